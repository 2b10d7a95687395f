# Google Drive Client — request-scoped Drive v3 client bound to one tenant's grant.
# Created: 2026-10-03
#
# Every public method issues exactly one Drive API call. Provider failures
# surface as BackendError carrying Drive's own message.

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from drivegate.errors import BackendError

logger = logging.getLogger(__name__)

_DRIVE_BASE = "https://www.googleapis.com/drive/v3"
_UPLOAD_BASE = "https://www.googleapis.com/upload/drive/v3"

FOLDER_MIME = "application/vnd.google-apps.folder"
BINARY_MIME = "application/octet-stream"

# Structured document kinds accepted by create-file
DOCUMENT_MIMES: dict[str, str] = {
    "doc": "application/vnd.google-apps.document",
    "sheet": "application/vnd.google-apps.spreadsheet",
    "slide": "application/vnd.google-apps.presentation",
}

LIST_FIELDS = (
    "files(id,name,mimeType,parents,modifiedTime,owners,webViewLink,webContentLink),"
    "nextPageToken"
)
METADATA_FIELDS = "id,name,mimeType,parents,modifiedTime,owners,webViewLink,webContentLink"
CREATED_FIELDS = "id,name,webViewLink"
UPLOADED_FIELDS = "id,name,webViewLink,webContentLink"
UPDATED_FIELDS = "id,name,parents,webViewLink,webContentLink"

_BOUNDARY = "drivegate_boundary"


def _multipart_body(metadata: dict[str, Any], content: bytes, content_type: str) -> bytes:
    return (
        (
            f"--{_BOUNDARY}\r\n"
            f"Content-Type: application/json; charset=UTF-8\r\n\r\n"
            f"{json.dumps(metadata)}\r\n"
            f"--{_BOUNDARY}\r\n"
            f"Content-Type: {content_type}\r\n\r\n"
        ).encode()
        + content
        + f"\r\n--{_BOUNDARY}--".encode()
    )


def _error_message(resp: httpx.Response) -> str:
    """Extract Drive's error message from a failed response."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text or f"Drive API returned HTTP {resp.status_code}"
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    if isinstance(error, str):
        return data.get("error_description") or error
    return f"Drive API returned HTTP {resp.status_code}"


class DriveClient:
    """HTTP client for Google Drive API v3.

    Holds one tenant's access token for the lifetime of a single request.
    """

    def __init__(
        self,
        access_token: str,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._access_token = access_token
        self._timeout = timeout
        self._transport = transport

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._access_token}"}

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        headers = {**self._headers, **kwargs.pop("headers", {})}
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("Drive request %s %s failed: %s", method, url, e)
            raise BackendError(str(e) or type(e).__name__) from e

        if resp.is_error:
            message = _error_message(resp)
            logger.warning("Drive API %s %s -> %s: %s", method, url, resp.status_code, message)
            raise BackendError(message, status=resp.status_code)
        return resp

    async def list_files(
        self,
        query: str | None = None,
        page_size: int = 50,
        page_token: str | None = None,
    ) -> dict[str, Any]:
        """List or search files.

        Returns Drive's payload as-is: ``files`` plus ``nextPageToken`` when
        more results exist.
        """
        params: dict[str, Any] = {"pageSize": page_size, "fields": LIST_FIELDS}
        if query:
            params["q"] = query
        if page_token:
            params["pageToken"] = page_token

        resp = await self._request("GET", f"{_DRIVE_BASE}/files", params=params)
        return resp.json()

    async def create_folder(self, name: str, parent_id: str | None = None) -> dict[str, Any]:
        return await self._create_metadata_only(name, FOLDER_MIME, parent_id)

    async def create_document(
        self, name: str, kind: str, parent_id: str | None = None
    ) -> dict[str, Any]:
        """Create an empty native Docs/Sheets/Slides file. *kind* is a DOCUMENT_MIMES key."""
        return await self._create_metadata_only(name, DOCUMENT_MIMES[kind], parent_id)

    async def _create_metadata_only(
        self, name: str, mime_type: str, parent_id: str | None
    ) -> dict[str, Any]:
        metadata: dict[str, Any] = {"name": name, "mimeType": mime_type}
        if parent_id:
            metadata["parents"] = [parent_id]

        resp = await self._request(
            "POST",
            f"{_DRIVE_BASE}/files",
            params={"fields": CREATED_FIELDS},
            json=metadata,
        )
        return resp.json()

    async def upload(
        self,
        name: str,
        content: bytes,
        parent_id: str | None = None,
        mime_type: str = BINARY_MIME,
    ) -> dict[str, Any]:
        """Create a binary file with a single multipart upload."""
        metadata: dict[str, Any] = {"name": name}
        if parent_id:
            metadata["parents"] = [parent_id]

        resp = await self._request(
            "POST",
            f"{_UPLOAD_BASE}/files",
            params={"uploadType": "multipart", "fields": UPLOADED_FIELDS},
            headers={"Content-Type": f"multipart/related; boundary={_BOUNDARY}"},
            content=_multipart_body(metadata, content, mime_type),
        )
        return resp.json()

    async def get_metadata(self, file_id: str) -> dict[str, Any]:
        resp = await self._request(
            "GET",
            f"{_DRIVE_BASE}/files/{file_id}",
            params={"fields": METADATA_FIELDS},
        )
        return resp.json()

    async def download(self, file_id: str) -> bytes:
        """Fetch a file's raw content."""
        resp = await self._request(
            "GET",
            f"{_DRIVE_BASE}/files/{file_id}",
            params={"alt": "media"},
        )
        return resp.content

    async def update(
        self,
        file_id: str,
        name: str | None = None,
        add_parent_id: str | None = None,
        remove_parent_id: str | None = None,
        content: bytes | None = None,
        mime_type: str = BINARY_MIME,
    ) -> dict[str, Any]:
        """Rename, reparent and/or replace content in one call.

        With *content* the metadata and media go out together as a multipart
        upload; otherwise a plain metadata PATCH is sent.
        """
        metadata: dict[str, Any] = {}
        if name:
            metadata["name"] = name

        params: dict[str, Any] = {"fields": UPDATED_FIELDS}
        if add_parent_id:
            params["addParents"] = add_parent_id
        if remove_parent_id:
            params["removeParents"] = remove_parent_id

        if content is not None:
            params["uploadType"] = "multipart"
            resp = await self._request(
                "PATCH",
                f"{_UPLOAD_BASE}/files/{file_id}",
                params=params,
                headers={"Content-Type": f"multipart/related; boundary={_BOUNDARY}"},
                content=_multipart_body(metadata, content, mime_type),
            )
        else:
            resp = await self._request(
                "PATCH",
                f"{_DRIVE_BASE}/files/{file_id}",
                params=params,
                json=metadata,
            )
        return resp.json()
