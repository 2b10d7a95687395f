# OAuth Manager — Google OAuth 2.0 auth code flow, grant refresh, per-tenant clients.
# Created: 2026-10-03

from __future__ import annotations

import logging
import time
import urllib.parse
from typing import Any

import httpx

from drivegate.errors import (
    ConfigurationError,
    ExchangeError,
    GrantRefreshError,
    NotAuthorized,
)
from drivegate.integrations.gdrive import DriveClient
from drivegate.integrations.token_store import CredentialStore, MemoryCredentialStore, OAuthGrant

logger = logging.getLogger(__name__)


# OAuth 2.0 provider configuration
PROVIDERS: dict[str, dict[str, str]] = {
    "google": {
        "auth_url": "https://accounts.google.com/o/oauth2/v2/auth",
        "token_url": "https://oauth2.googleapis.com/token",
        "revoke_url": "https://oauth2.googleapis.com/revoke",
    },
}


class OAuthManager:
    """Builds authorized Drive clients for tenants.

    Owns the gateway's application identity (client id/secret + redirect
    URI) and the credential store. Covers:
    - Consent URL generation
    - Code exchange for a grant
    - Explicit refresh-on-expiry inside ``authorize``
    - Revocation
    """

    def __init__(
        self,
        store: CredentialStore | None = None,
        *,
        client_id: str | None = None,
        client_secret: str | None = None,
        redirect_uri: str = "http://localhost:3000/auth/callback",
        provider: str = "google",
        timeout: float = 15.0,
        drive_timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        config = PROVIDERS.get(provider)
        if not config:
            raise ValueError(f"Unknown OAuth provider: {provider}")

        self.store = store if store is not None else MemoryCredentialStore()
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.provider = config
        self.timeout = timeout
        self.drive_timeout = drive_timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings,
        store: CredentialStore,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> OAuthManager:
        return cls(
            store,
            client_id=settings.google_oauth_client_id,
            client_secret=settings.google_oauth_client_secret,
            redirect_uri=settings.redirect_uri,
            timeout=settings.oauth_timeout,
            drive_timeout=settings.drive_timeout,
            transport=transport,
        )

    def app_credentials(self) -> tuple[str, str]:
        """The gateway's own client id and secret."""
        if not self.client_id or not self.client_secret:
            raise ConfigurationError(
                "Google OAuth client id/secret not configured "
                "(set DRIVEGATE_GOOGLE_OAUTH_CLIENT_ID and DRIVEGATE_GOOGLE_OAUTH_CLIENT_SECRET)"
            )
        return self.client_id, self.client_secret

    def build_client(self) -> httpx.AsyncClient:
        """Unauthenticated client for the provider's token endpoints."""
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def generate_consent_url(self, scopes: list[str], state: str) -> str:
        """Provider-hosted consent URL requesting offline access.

        Args:
            scopes: OAuth scopes to request.
            state: Consent state token; comes back unchanged on the callback.

        Returns:
            URL to send the end user to.
        """
        client_id, _ = self.app_credentials()
        params = {
            "client_id": client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(scopes),
            "access_type": "offline",
            "prompt": "consent",
            "include_granted_scopes": "true",
            "state": state,
        }
        return f"{self.provider['auth_url']}?{urllib.parse.urlencode(params)}"

    async def _token_request(self, data: dict[str, str]) -> dict[str, Any]:
        async with self.build_client() as client:
            resp = await client.post(self.provider["token_url"], data=data)
            resp.raise_for_status()
            return resp.json()

    @staticmethod
    def _grant_from_response(data: dict[str, Any], fallback: OAuthGrant | None = None) -> OAuthGrant:
        expires_in = data.get("expires_in", 3600)
        scope = data.get("scope")
        return OAuthGrant(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token") or (fallback.refresh_token if fallback else None),
            token_type=data.get("token_type", "Bearer"),
            expires_at=time.time() + int(expires_in),
            scopes=scope.split() if scope else (list(fallback.scopes) if fallback else []),
        )

    async def exchange_code_for_grant(self, code: str) -> OAuthGrant:
        """Exchange an authorization code for a grant.

        Raises:
            ExchangeError: code invalid/expired, or the token endpoint is
                unreachable or returned garbage.
        """
        client_id, client_secret = self.app_credentials()
        try:
            data = await self._token_request(
                {
                    "code": code,
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "redirect_uri": self.redirect_uri,
                    "grant_type": "authorization_code",
                }
            )
            return self._grant_from_response(data)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning("Authorization code exchange failed: %s", e)
            raise ExchangeError("Authorization code exchange failed") from e

    async def refresh_grant(self, tenant_key: str, grant: OAuthGrant) -> OAuthGrant:
        """Refresh an expired grant and write it back to the store.

        Raises:
            GrantRefreshError: no refresh token, or the provider refused it.
        """
        if not grant.refresh_token:
            raise GrantRefreshError("Grant expired and has no refresh token")

        client_id, client_secret = self.app_credentials()
        try:
            data = await self._token_request(
                {
                    "refresh_token": grant.refresh_token,
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "grant_type": "refresh_token",
                }
            )
            refreshed = self._grant_from_response(data, fallback=grant)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning("Token refresh failed for tenant %s: %s", tenant_key, e)
            raise GrantRefreshError("Grant refresh failed; re-run the consent flow") from e

        self.store.put(tenant_key, refreshed)
        logger.info("Refreshed OAuth grant for tenant %s", tenant_key)
        return refreshed

    async def authorize(self, tenant_key: str) -> DriveClient:
        """Return a Drive client carrying *tenant_key*'s grant.

        Expired grants are refreshed (and persisted) first, so callers never
        check expiry themselves.

        Raises:
            NotAuthorized: no grant on file for the tenant.
            GrantRefreshError: grant expired and refresh failed.
        """
        grant = self.store.get(tenant_key)
        if grant is None:
            raise NotAuthorized("No grant on file for this tenant; complete the consent flow")

        if grant.is_expired():
            grant = await self.refresh_grant(tenant_key, grant)

        return DriveClient(
            grant.access_token, timeout=self.drive_timeout, transport=self._transport
        )

    async def revoke(self, tenant_key: str) -> bool:
        """Revoke the tenant's grant at the provider and forget it locally.

        Returns True if a grant was on file. Provider-side revocation is
        best-effort; the local entry is removed either way.
        """
        grant = self.store.get(tenant_key)
        if grant is None:
            return False

        token = grant.refresh_token or grant.access_token
        try:
            async with self.build_client() as client:
                resp = await client.post(self.provider["revoke_url"], data={"token": token})
                if resp.is_error:
                    logger.warning(
                        "Provider refused revocation for tenant %s: HTTP %s",
                        tenant_key,
                        resp.status_code,
                    )
        except httpx.HTTPError as e:
            logger.warning("Revocation request failed for tenant %s: %s", tenant_key, e)

        self.store.delete(tenant_key)
        logger.info("Revoked grant for tenant %s", tenant_key)
        return True
