# Health router.
# Created: 2026-10-04

from __future__ import annotations

from fastapi import APIRouter

from drivegate.api.schemas.common import OkResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=OkResponse)
async def health():
    """Liveness probe."""
    return OkResponse()
