# Gateway settings loaded from the environment (DRIVEGATE_*) and .env.
# Created: 2026-10-02

from __future__ import annotations

import logging
import secrets
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_DRIVE_SCOPES = "https://www.googleapis.com/auth/drive"


def get_config_dir() -> Path:
    """Get/create the gateway's state directory (~/.drivegate)."""
    d = Path.home() / ".drivegate"
    d.mkdir(exist_ok=True)
    return d


class Settings(BaseSettings):
    """Deployment configuration.

    Every field can be set as ``DRIVEGATE_<FIELD>`` in the environment or in
    a ``.env`` file next to the process.
    """

    model_config = SettingsConfigDict(
        env_prefix="DRIVEGATE_",
        env_file=".env",
        extra="ignore",
    )

    # Public URL of this gateway; the OAuth redirect target is derived from it
    base_url: str = "http://localhost:3000"

    # Gateway's own Google OAuth application identity
    google_oauth_client_id: str | None = None
    google_oauth_client_secret: str | None = None
    drive_scopes: str = DEFAULT_DRIVE_SCOPES

    # Tenant binding
    tenant_mode: Literal["header", "session"] = "header"
    tenant_header: str = "X-Auth-Key"
    signed_tenant_keys: bool = False
    secret_key: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    session_cookie_name: str = "drivegate_session"
    session_ttl_hours: int = 24 * 14
    state_ttl_seconds: int = 600

    # Credential store backend
    credential_store: Literal["memory", "file"] = "memory"
    token_dir: Path | None = None

    # Pass-through proxy mode
    upstream_url: str | None = None

    # Static surface
    manifest_path: Path | None = None
    legal_text: str = "Terms"

    # Upper bounds for outbound calls (seconds)
    oauth_timeout: float = 15.0
    drive_timeout: float = 60.0

    cors_allowed_origins: list[str] = ["*"]
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"

    @property
    def scopes(self) -> list[str]:
        return self.drive_scopes.split()

    @property
    def redirect_uri(self) -> str:
        return f"{self.base_url.rstrip('/')}/auth/callback"

    @property
    def secure_cookies(self) -> bool:
        return self.base_url.startswith("https://")

    @classmethod
    def load(cls) -> Settings:
        settings = cls()
        if "secret_key" not in settings.model_fields_set:
            logger.warning(
                "DRIVEGATE_SECRET_KEY not set; using a per-process key. "
                "Pending consent links and sessions will not survive a restart."
            )
        return settings


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings.load()
