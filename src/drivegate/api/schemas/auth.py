# Consent flow schemas.
# Created: 2026-10-04

from __future__ import annotations

from pydantic import BaseModel


class AuthUrlResponse(BaseModel):
    """Consent URL, plus the tenant key to send back in header mode."""

    url: str
    key: str | None = None


class RevokeResponse(BaseModel):
    revoked: bool
