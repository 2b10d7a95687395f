# Tenant resolution — who is this request acting for?
# Created: 2026-10-04
#
# One capability, two strategies selected by the ``tenant_mode`` setting:
#   header:  explicit key in a request header on every call
#   session: signed cookie issued by /auth/callback

from __future__ import annotations

import logging
import re
import secrets
from typing import TYPE_CHECKING, Protocol

from drivegate.errors import NotAuthenticated, NotAuthorized, ValidationError
from drivegate.security.signed_tokens import sign_tenant_key, unsign_tenant_key

if TYPE_CHECKING:
    from fastapi import Request, Response

    from drivegate.config import Settings

logger = logging.getLogger(__name__)

TENANT_KEY_PATTERN = re.compile(r"[A-Za-z0-9._~-]{1,128}")


def validate_tenant_key(key: str | None) -> str:
    """Check a caller-chosen tenant key against the allowed character set."""
    if not key:
        raise ValidationError("key query parameter is required", code="key_required")
    if not TENANT_KEY_PATTERN.fullmatch(key):
        raise ValidationError(
            "key must be 1-128 characters from [A-Za-z0-9._~-]", code="invalid_key"
        )
    return key


class TenantResolver(Protocol):
    """Extracts the tenant key from an inbound request."""

    mode: str

    def resolve(self, request: Request) -> str:
        """Return the tenant key or raise NotAuthenticated."""
        ...

    def consent_key(self, request: Request) -> tuple[str, str | None]:
        """Tenant key to bind a new consent flow to.

        Returns ``(tenant_key, key_for_caller)``; the second item is what
        ``/auth/url`` echoes back, or None when nothing is echoed.
        """
        ...

    def bind(self, response: Response, tenant_key: str) -> None:
        """Attach the tenant identity to the callback response, if the mode needs it."""
        ...


class HeaderTenantResolver:
    """Tenant key travels in a fixed header (``X-Auth-Key`` by default).

    With ``signed_tenant_keys`` the header must carry the signed token handed
    out by ``/auth/url``, so knowing a bare key is not enough to act as it.
    """

    mode = "header"

    def __init__(self, header: str, secret: str, signed: bool = False):
        self.header = header
        self.secret = secret
        self.signed = signed

    def resolve(self, request: Request) -> str:
        value = request.headers.get(self.header)
        if not value:
            raise NotAuthenticated(f"Missing {self.header} header")
        if not self.signed:
            # No consent flow can have stored a grant under such a key
            if not TENANT_KEY_PATTERN.fullmatch(value):
                raise NotAuthorized("No grant on file for this tenant")
            return value

        tenant_key = unsign_tenant_key(self.secret, value)
        if tenant_key is None:
            logger.warning("Rejected tenant token with bad signature")
            raise NotAuthenticated(f"Invalid {self.header} token")
        return tenant_key

    def consent_key(self, request: Request) -> tuple[str, str | None]:
        key = validate_tenant_key(request.query_params.get("key"))
        if self.signed:
            return key, sign_tenant_key(self.secret, key)
        return key, key

    def bind(self, response: Response, tenant_key: str) -> None:
        return None


class SessionTenantResolver:
    """Tenant identity lives in a signed, HttpOnly session cookie."""

    mode = "session"

    def __init__(
        self,
        secret: str,
        cookie_name: str = "drivegate_session",
        ttl_hours: int = 24 * 14,
        secure: bool = False,
    ):
        self.secret = secret
        self.cookie_name = cookie_name
        self.ttl_seconds = ttl_hours * 3600
        self.secure = secure

    def _session_key(self, request: Request) -> str | None:
        cookie = request.cookies.get(self.cookie_name)
        if not cookie:
            return None
        return unsign_tenant_key(self.secret, cookie)

    def resolve(self, request: Request) -> str:
        tenant_key = self._session_key(request)
        if tenant_key is None:
            raise NotAuthenticated("No active session")
        return tenant_key

    def consent_key(self, request: Request) -> tuple[str, str | None]:
        # Re-consenting from an existing session keeps the same tenant
        return self._session_key(request) or secrets.token_urlsafe(24), None

    def bind(self, response: Response, tenant_key: str) -> None:
        response.set_cookie(
            self.cookie_name,
            sign_tenant_key(self.secret, tenant_key, self.ttl_seconds),
            max_age=self.ttl_seconds,
            httponly=True,
            samesite="lax",
            secure=self.secure,
        )

    def clear(self, response: Response) -> None:
        response.delete_cookie(self.cookie_name)


def create_tenant_resolver(settings: Settings) -> TenantResolver:
    """Pick the resolver for the configured ``tenant_mode``."""
    if settings.tenant_mode == "session":
        return SessionTenantResolver(
            settings.secret_key,
            cookie_name=settings.session_cookie_name,
            ttl_hours=settings.session_ttl_hours,
            secure=settings.secure_cookies,
        )
    return HeaderTenantResolver(
        settings.tenant_header,
        settings.secret_key,
        signed=settings.signed_tenant_keys,
    )
