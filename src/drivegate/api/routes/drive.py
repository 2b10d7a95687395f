# Drive router — one endpoint per Drive operation, all behind the auth gate.
# Created: 2026-10-05
#
# Each handler validates its input, makes exactly one Drive call through the
# request's DriveClient and returns Drive's payload. No retries here.

from __future__ import annotations

import base64
import binascii
import logging

from fastapi import APIRouter, Depends, Query

from drivegate.api.deps import require_drive_client
from drivegate.api.schemas.common import ErrorResponse
from drivegate.api.schemas.drive import (
    CreateFileRequest,
    CreateFolderRequest,
    DownloadResponse,
    UpdateFileRequest,
)
from drivegate.errors import ValidationError
from drivegate.integrations.gdrive import DOCUMENT_MIMES, DriveClient

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/drive",
    tags=["Drive"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


# Accept line-wrapped, unpadded and url-safe payloads
_URLSAFE = str.maketrans("-_", "+/")


def _decode_payload(data: str) -> bytes:
    cleaned = "".join(data.split()).translate(_URLSAFE).rstrip("=")
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        return base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("base64 payload is not valid base64", code="invalid_base64") from e


@router.get("/list")
async def list_files(
    q: str = "",
    pageSize: int = Query(50, ge=1, le=1000),
    pageToken: str | None = None,
    drive: DriveClient = Depends(require_drive_client),
):
    """List or search files; pass ``nextPageToken`` back as ``pageToken`` for more."""
    return await drive.list_files(query=q, page_size=pageSize, page_token=pageToken)


@router.post("/create-folder")
async def create_folder(
    body: CreateFolderRequest,
    drive: DriveClient = Depends(require_drive_client),
):
    return await drive.create_folder(body.name, parent_id=body.parentId)


@router.post("/create-file")
async def create_file(
    body: CreateFileRequest,
    drive: DriveClient = Depends(require_drive_client),
):
    """Create a native document or upload a binary file.

    A recognised ``type`` (doc, sheet, slide) wins over ``base64``; without
    one, ``base64`` is required.
    """
    if body.type in DOCUMENT_MIMES:
        return await drive.create_document(body.name, body.type, parent_id=body.parentId)

    if not body.base64:
        raise ValidationError(
            "base64 is required when type is not doc, sheet or slide",
            code="base64_required_for_binary",
        )
    content = _decode_payload(body.base64)
    return await drive.upload(body.name, content, parent_id=body.parentId)


@router.get("/metadata/{file_id}")
async def get_metadata(file_id: str, drive: DriveClient = Depends(require_drive_client)):
    return await drive.get_metadata(file_id)


@router.get("/download/{file_id}", response_model=DownloadResponse)
async def download(file_id: str, drive: DriveClient = Depends(require_drive_client)):
    """File content, base64-encoded."""
    content = await drive.download(file_id)
    return DownloadResponse(base64=base64.b64encode(content).decode())


@router.patch("/update/{file_id}")
async def update_file(
    file_id: str,
    body: UpdateFileRequest,
    drive: DriveClient = Depends(require_drive_client),
):
    """Rename, reparent and/or replace content with a single Drive call."""
    content = _decode_payload(body.base64) if body.base64 else None
    return await drive.update(
        file_id,
        name=body.name,
        add_parent_id=body.addParentId,
        remove_parent_id=body.removeParentId,
        content=content,
    )
