"""HMAC-signed tokens that carry a tenant key.

Token format: ``{b64url(tenant_key)}:{expires_unix}:{hex_hmac}``

Used for the OAuth ``state`` parameter (short TTL), the session cookie in
session mode, and signed tenant keys in header mode (``expires`` of ``0``
means the token never expires).  The gateway secret is the HMAC key, so
rotating it invalidates every outstanding token at once and no server-side
state is required.
"""

import base64
import binascii
import hashlib
import hmac
import time

__all__ = ["sign_tenant_key", "unsign_tenant_key", "encode_state", "decode_state"]


def sign_tenant_key(secret: str, tenant_key: str, ttl_seconds: int | None = None) -> str:
    """Issue a token for *tenant_key*, valid for *ttl_seconds* (forever if None)."""
    payload = base64.urlsafe_b64encode(tenant_key.encode()).rstrip(b"=").decode()
    expires = int(time.time()) + ttl_seconds if ttl_seconds is not None else 0
    message = f"{payload}:{expires}"
    return f"{message}:{_sign(secret, message)}"


def unsign_tenant_key(secret: str, token: str) -> str | None:
    """Return the tenant key inside *token*, or None if forged, malformed or expired."""
    parts = token.split(":")
    if len(parts) != 3:
        return None

    payload, expires_str, sig = parts
    try:
        expires = int(expires_str)
    except ValueError:
        return None

    if not hmac.compare_digest(sig, _sign(secret, f"{payload}:{expires_str}")):
        return None

    if expires and time.time() > expires:
        return None

    try:
        padded = payload + "=" * (-len(payload) % 4)
        return base64.urlsafe_b64decode(padded.encode()).decode()
    except (binascii.Error, UnicodeDecodeError):
        return None


def encode_state(secret: str, tenant_key: str, ttl_seconds: int = 600) -> str:
    """Consent state token round-tripped through the provider redirect."""
    return sign_tenant_key(secret, tenant_key, ttl_seconds)


def decode_state(secret: str, state: str) -> str | None:
    return unsign_tenant_key(secret, state)


def _sign(key: str, message: str) -> str:
    return hmac.new(key.encode(), message.encode(), hashlib.sha256).hexdigest()
