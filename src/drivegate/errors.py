# Gateway error taxonomy.
# Created: 2026-10-02
#
# Every failure that can reach a caller is one of these. The app-wide
# exception handler in api/serve.py renders them as {"error", "detail"}.

from __future__ import annotations

__all__ = [
    "GatewayError",
    "ConfigurationError",
    "NotAuthenticated",
    "NotAuthorized",
    "GrantRefreshError",
    "ExchangeError",
    "ValidationError",
    "BackendError",
]


class GatewayError(Exception):
    """Base class for errors surfaced to gateway callers."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str = "", *, code: str | None = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, str]:
        return {"error": self.code, "detail": self.message}


class ConfigurationError(GatewayError):
    """Required deployment configuration is missing."""

    status_code = 500
    code = "configuration_error"


class NotAuthenticated(GatewayError):
    """No tenant identity (header or session) on the request."""

    status_code = 401
    code = "not_authenticated"


class NotAuthorized(GatewayError):
    """Tenant identity present but no usable grant on file."""

    status_code = 401
    code = "not_authorized"


class GrantRefreshError(NotAuthorized):
    """The stored grant expired and could not be refreshed."""

    code = "grant_refresh_failed"


class ExchangeError(GatewayError):
    """Authorization code exchange with the provider failed."""

    status_code = 400
    code = "exchange_failed"


class ValidationError(GatewayError):
    """Malformed or incomplete operation input."""

    status_code = 400
    code = "validation_error"


class BackendError(GatewayError):
    """The storage provider rejected a call. ``message`` is the provider's own text."""

    status_code = 500
    code = "backend_error"

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.upstream_status = status
