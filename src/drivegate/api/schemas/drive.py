# Drive operation schemas.
# Created: 2026-10-04
#
# Field names follow the public action manifest (camelCase).

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DriveRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")


class CreateFolderRequest(DriveRequest):
    """Create a folder, optionally inside ``parentId``."""

    name: str = Field(..., min_length=1)
    parentId: str | None = None


class CreateFileRequest(DriveRequest):
    """Create a native document (``type``) or upload raw bytes (``base64``)."""

    name: str = Field(..., min_length=1)
    parentId: str | None = None
    type: str | None = None
    base64: str | None = None


class UpdateFileRequest(DriveRequest):
    """Any subset of rename, reparent and content replacement."""

    name: str | None = None
    addParentId: str | None = None
    removeParentId: str | None = None
    base64: str | None = None


class DownloadResponse(BaseModel):
    base64: str

