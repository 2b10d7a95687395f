# Shared FastAPI dependencies for the API layer.
# Created: 2026-10-04

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from fastapi import Request

from drivegate.api.tenancy import TenantResolver
from drivegate.config import Settings
from drivegate.integrations.gdrive import DriveClient
from drivegate.integrations.oauth import OAuthManager

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_oauth_manager(request: Request) -> OAuthManager:
    return request.app.state.oauth


def get_tenant_resolver(request: Request) -> TenantResolver:
    return request.app.state.tenant_resolver


async def require_tenant(request: Request) -> str:
    """Tenant key for the request, or NotAuthenticated."""
    return get_tenant_resolver(request).resolve(request)


async def require_drive_client(request: Request) -> AsyncIterator[DriveClient]:
    """Auth gate for every Drive endpoint.

    Usage::

        @router.get("/drive/list")
        async def list_files(drive: DriveClient = Depends(require_drive_client)): ...

    Resolves the tenant, authorizes it (refreshing an expired grant), and
    exposes the client on ``request.state`` for the duration of the request.
    Failures short-circuit before the handler runs.
    """
    tenant_key = get_tenant_resolver(request).resolve(request)
    drive = await get_oauth_manager(request).authorize(tenant_key)

    request.state.tenant_key = tenant_key
    request.state.drive_client = drive
    try:
        yield drive
    finally:
        request.state.drive_client = None
