# Credential Store — per-tenant OAuth grants.
# Created: 2026-10-02
#
# Exactly one grant per tenant key; put() overwrites (last write wins).
# Two backends: process memory (default) and one JSON file per tenant.

from __future__ import annotations

import hashlib
import json
import logging
import os
import stat
import tempfile
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class OAuthGrant:
    """OAuth 2.0 credential set for one tenant."""

    access_token: str
    refresh_token: str | None = None
    token_type: str = "Bearer"
    expires_at: float | None = None  # Unix timestamp
    scopes: list[str] = field(default_factory=list)

    def is_expired(self, leeway: float = 60.0) -> bool:
        """True once the access token is within *leeway* seconds of expiry."""
        if self.expires_at is None:
            return False
        return time.time() + leeway >= self.expires_at


class CredentialStore(ABC):
    """Mapping of tenant key to its current grant."""

    @abstractmethod
    def get(self, key: str) -> OAuthGrant | None: ...

    @abstractmethod
    def put(self, key: str, grant: OAuthGrant) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> bool: ...

    @abstractmethod
    def keys(self) -> list[str]: ...


class MemoryCredentialStore(CredentialStore):
    """Volatile store; grants live as long as the process."""

    def __init__(self):
        self._grants: dict[str, OAuthGrant] = {}

    def get(self, key: str) -> OAuthGrant | None:
        return self._grants.get(key)

    def put(self, key: str, grant: OAuthGrant) -> None:
        self._grants[key] = grant
        logger.debug("Stored grant for tenant %s", key)

    def delete(self, key: str) -> bool:
        return self._grants.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._grants)


class FileCredentialStore(CredentialStore):
    """File-based store at {directory}/{sha256(tenant_key)}.json.

    The file name is a fixed-length digest so any tenant key maps to a
    legal file name; the key itself is kept inside the file for keys().

    Files are chmod 0600 (owner-only read/write) and replaced atomically,
    so a concurrent reader sees either the old or the new grant.
    """

    def __init__(self, directory: Path | None = None):
        if directory is None:
            from drivegate.config import get_config_dir

            directory = get_config_dir() / "grants"
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode()).hexdigest()
        return self.directory / f"{digest}.json"

    @staticmethod
    def _load(path: Path) -> dict:
        data = json.loads(path.read_text())
        if not isinstance(data, dict) or not isinstance(data.get("grant"), dict):
            raise ValueError("not a grant file")
        return data

    def get(self, key: str) -> OAuthGrant | None:
        path = self._path(key)
        if not path.exists():
            return None

        try:
            return OAuthGrant(**self._load(path)["grant"])
        except (OSError, ValueError, TypeError) as e:
            logger.warning("Failed to load grant for tenant %s: %s", key, e)
            return None

    def put(self, key: str, grant: OAuthGrant) -> None:
        fd, tmp = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump({"tenant_key": key, "grant": asdict(grant)}, f, indent=2)
            os.chmod(tmp, stat.S_IRUSR | stat.S_IWUSR)
            os.replace(tmp, self._path(key))
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.info("Saved grant for tenant %s", key)

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if path.exists():
            path.unlink()
            logger.info("Deleted grant for tenant %s", key)
            return True
        return False

    def keys(self) -> list[str]:
        keys = []
        for path in self.directory.glob("*.json"):
            try:
                keys.append(self._load(path)["tenant_key"])
            except (OSError, ValueError, KeyError) as e:
                logger.warning("Skipping unreadable grant file %s: %s", path.name, e)
        return keys


def create_credential_store(backend: str, directory: Path | None = None) -> CredentialStore:
    """Build the store named by the ``credential_store`` setting."""
    if backend == "memory":
        return MemoryCredentialStore()
    if backend == "file":
        return FileCredentialStore(directory)
    raise ValueError(f"Unknown credential store: {backend}")
