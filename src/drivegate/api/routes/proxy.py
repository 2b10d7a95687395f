# Pass-through proxy — forwards GET/POST on "/" to one fixed upstream URL.
# Created: 2026-10-06
#
# No tenant or credential logic. Query string and JSON body go upstream
# untouched; upstream status and content type come back verbatim.

from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from drivegate.api.deps import get_app_settings
from drivegate.config import Settings
from drivegate.errors import ConfigurationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Proxy"])


def _upstream_url(settings: Settings, request: Request) -> str:
    if not settings.upstream_url:
        raise ConfigurationError(
            "Upstream URL not set (DRIVEGATE_UPSTREAM_URL)", code="upstream_url_not_set"
        )
    query = request.url.query
    base = settings.upstream_url.split("?", 1)[0]
    return f"{base}?{query}" if query else base


async def _forward(
    request: Request, settings: Settings, method: str, body: Any = None
) -> Response:
    url = _upstream_url(settings, request)
    transport = getattr(request.app.state, "upstream_transport", None)

    try:
        async with httpx.AsyncClient(
            timeout=settings.drive_timeout, transport=transport, follow_redirects=True
        ) as client:
            if method == "POST":
                resp = await client.post(url, json=body)
            else:
                resp = await client.get(url)
    except httpx.HTTPError as e:
        logger.warning("Upstream %s %s failed: %s", method, url, e)
        return JSONResponse(
            status_code=500, content={"error": "upstream_error", "detail": str(e)}
        )

    return Response(
        content=resp.content,
        status_code=resp.status_code,
        media_type=resp.headers.get("content-type", "application/json"),
    )


@router.get("/")
async def proxy_get(request: Request, settings: Settings = Depends(get_app_settings)):
    return await _forward(request, settings, "GET")


@router.post("/")
async def proxy_post(request: Request, settings: Settings = Depends(get_app_settings)):
    try:
        body = await request.json()
    except ValueError:
        body = None
    return await _forward(request, settings, "POST", body if body is not None else {})
