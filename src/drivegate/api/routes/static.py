# Static surface — capability manifest and legal text.
# Created: 2026-10-05

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, PlainTextResponse

from drivegate.api.deps import get_app_settings
from drivegate.config import Settings
from drivegate.errors import ConfigurationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Static"])

_DEFAULT_MANIFEST = Path(__file__).resolve().parent.parent.parent / "static" / "openapi.json"


@router.get("/openapi.json", include_in_schema=False)
async def capability_manifest(settings: Settings = Depends(get_app_settings)):
    """Serve the action manifest that agent runtimes import."""
    path = settings.manifest_path or _DEFAULT_MANIFEST
    if not path.is_file():
        raise ConfigurationError(f"Capability manifest not found at {path}")
    return FileResponse(path, media_type="application/json")


@router.get("/legal", response_class=PlainTextResponse)
async def legal(settings: Settings = Depends(get_app_settings)):
    return settings.legal_text
