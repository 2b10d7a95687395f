# Consent flow router — consent URL, provider callback, logout, revoke.
# Created: 2026-10-04
#
# The callback is human-facing (the end user's browser lands on it), so it
# answers in plain text rather than JSON.

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from drivegate.api.deps import (
    get_app_settings,
    get_oauth_manager,
    get_tenant_resolver,
    require_tenant,
)
from drivegate.api.schemas.auth import AuthUrlResponse, RevokeResponse
from drivegate.api.schemas.common import OkResponse
from drivegate.api.tenancy import SessionTenantResolver, TenantResolver
from drivegate.config import Settings
from drivegate.errors import ConfigurationError, ExchangeError
from drivegate.integrations.oauth import OAuthManager
from drivegate.security.signed_tokens import decode_state, encode_state

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])

AUTH_SUCCESS_TEXT = "Authenticated. You can close this tab."
AUTH_FAILURE_TEXT = "Authentication failed."


@router.get("/auth/url", response_model=AuthUrlResponse, response_model_exclude_none=True)
async def consent_url(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    oauth: OAuthManager = Depends(get_oauth_manager),
    resolver: TenantResolver = Depends(get_tenant_resolver),
):
    """Issue a provider consent URL bound to the caller's tenant key."""
    tenant_key, caller_key = resolver.consent_key(request)
    state = encode_state(settings.secret_key, tenant_key, settings.state_ttl_seconds)
    url = oauth.generate_consent_url(settings.scopes, state=state)
    return AuthUrlResponse(url=url, key=caller_key)


@router.get("/auth/callback", response_class=PlainTextResponse)
async def consent_callback(
    request: Request,
    code: str | None = Query(None),
    state: str | None = Query(None),
    error: str | None = Query(None),
    settings: Settings = Depends(get_app_settings),
    oauth: OAuthManager = Depends(get_oauth_manager),
    resolver: TenantResolver = Depends(get_tenant_resolver),
):
    """Provider redirect target: exchange the code and store the grant."""
    if error:
        logger.info("Consent declined or failed at provider: %s", error)
        return PlainTextResponse(AUTH_FAILURE_TEXT, status_code=400)
    if not code or not state:
        return PlainTextResponse(AUTH_FAILURE_TEXT, status_code=400)

    tenant_key = decode_state(settings.secret_key, state)
    if tenant_key is None:
        logger.warning("Callback with invalid or expired state")
        return PlainTextResponse(AUTH_FAILURE_TEXT, status_code=400)

    try:
        grant = await oauth.exchange_code_for_grant(code)
    except ConfigurationError as e:
        return PlainTextResponse(e.message, status_code=e.status_code)
    except ExchangeError:
        return PlainTextResponse(AUTH_FAILURE_TEXT, status_code=400)

    oauth.store.put(tenant_key, grant)
    logger.info("Stored grant for tenant %s", tenant_key)

    response = PlainTextResponse(AUTH_SUCCESS_TEXT)
    resolver.bind(response, tenant_key)
    return response


@router.post("/auth/logout", response_model=OkResponse)
async def logout(resolver: TenantResolver = Depends(get_tenant_resolver)):
    """End the browser session (session mode). The stored grant is kept."""
    response = JSONResponse({"ok": True})
    if isinstance(resolver, SessionTenantResolver):
        resolver.clear(response)
    return response


@router.delete("/auth/grant", response_model=RevokeResponse)
async def revoke_grant(
    tenant_key: str = Depends(require_tenant),
    oauth: OAuthManager = Depends(get_oauth_manager),
):
    """Revoke the caller's grant at the provider and forget it."""
    revoked = await oauth.revoke(tenant_key)
    return RevokeResponse(revoked=revoked)
