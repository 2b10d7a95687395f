# Shared fixtures: settings, an in-memory store, and a fake Google backend.
# Created: 2026-10-07

import json
import time
import urllib.parse

import httpx
import pytest
from fastapi.testclient import TestClient

from drivegate.api.serve import create_api_app
from drivegate.config import Settings
from drivegate.integrations.token_store import MemoryCredentialStore, OAuthGrant


class FakeGoogle:
    """Stands in for Google's token and Drive endpoints via httpx.MockTransport.

    Records every call so tests can assert how many backend requests a
    gateway request produced.
    """

    def __init__(self):
        self.token_calls: list[dict[str, str]] = []
        self.revoke_calls: list[dict[str, str]] = []
        self.drive_calls: list[httpx.Request] = []
        self.token_status = 200
        self.token_body: dict = {
            "access_token": "access-from-code",
            "refresh_token": "refresh-from-code",
            "expires_in": 3600,
            "token_type": "Bearer",
            "scope": "https://www.googleapis.com/auth/drive",
        }
        self.drive_error: tuple[int, str] | None = None
        self.download_content = b"hello"

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "oauth2.googleapis.com":
            form = dict(urllib.parse.parse_qsl(request.content.decode()))
            if request.url.path == "/revoke":
                self.revoke_calls.append(form)
                return httpx.Response(200)
            self.token_calls.append(form)
            return httpx.Response(self.token_status, json=self.token_body)

        self.drive_calls.append(request)
        if self.drive_error:
            status, message = self.drive_error
            return httpx.Response(
                status, json={"error": {"code": status, "message": message}}
            )
        return self._drive_response(request)

    def _drive_response(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        params = request.url.params

        if request.method == "GET" and path == "/drive/v3/files":
            return httpx.Response(
                200,
                json={"files": [{"id": "f1", "name": "report.pdf"}], "nextPageToken": "page-2"},
            )
        if request.method == "GET" and path.startswith("/drive/v3/files/"):
            file_id = path.rsplit("/", 1)[1]
            if params.get("alt") == "media":
                return httpx.Response(200, content=self.download_content)
            return httpx.Response(200, json={"id": file_id, "name": "report.pdf"})
        if request.method == "POST" and path == "/drive/v3/files":
            meta = json.loads(request.content)
            return httpx.Response(
                200,
                json={"id": "new-1", "name": meta["name"], "webViewLink": "https://drive/new-1"},
            )
        if request.method == "POST" and path == "/upload/drive/v3/files":
            return httpx.Response(200, json={"id": "up-1", "name": "upload.bin"})
        if request.method == "PATCH":
            file_id = path.rsplit("/", 1)[1]
            return httpx.Response(200, json={"id": file_id, "name": "updated"})
        return httpx.Response(404, json={"error": {"code": 404, "message": "Not Found"}})


@pytest.fixture
def fake_google():
    return FakeGoogle()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        base_url="http://testserver",
        google_oauth_client_id="client-id",
        google_oauth_client_secret="client-secret",
        secret_key="test-secret",
    )


@pytest.fixture
def store():
    return MemoryCredentialStore()


@pytest.fixture
def make_grant():
    def _make(access_token="tok-abc", refresh_token="ref-abc", expires_in=3600):
        return OAuthGrant(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=time.time() + expires_in,
            scopes=["https://www.googleapis.com/auth/drive"],
        )

    return _make


@pytest.fixture
def app(settings, store, fake_google):
    return create_api_app(settings, store=store, transport=fake_google.transport)


@pytest.fixture
def client(app):
    return TestClient(app)
