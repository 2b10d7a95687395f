# Tests for the pass-through proxy app.
# Created: 2026-10-09

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from drivegate.api.serve import create_proxy_app


class Upstream:
    def __init__(self):
        self.calls: list[httpx.Request] = []
        self.status = 200
        self.content = b'{"result": "ok"}'
        self.content_type = "application/json"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        return httpx.Response(
            self.status, content=self.content, headers={"content-type": self.content_type}
        )


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def proxy_client(settings, upstream):
    configured = settings.model_copy(update={"upstream_url": "https://upstream.test/exec"})
    app = create_proxy_app(configured, transport=httpx.MockTransport(upstream.handler))
    return TestClient(app)


class TestForwarding:
    def test_get_forwards_query(self, proxy_client, upstream):
        resp = proxy_client.get("/", params={"action": "list", "q": "x"})

        assert resp.status_code == 200
        assert resp.json() == {"result": "ok"}
        req = upstream.calls[0]
        assert req.method == "GET"
        assert req.url.host == "upstream.test"
        assert req.url.path == "/exec"
        assert req.url.params["action"] == "list"
        assert req.url.params["q"] == "x"

    def test_get_without_query(self, proxy_client, upstream):
        proxy_client.get("/")
        assert upstream.calls[0].url.query == b""

    def test_post_forwards_json_body(self, proxy_client, upstream):
        proxy_client.post("/", params={"action": "create"}, json={"name": "Plan"})

        req = upstream.calls[0]
        assert req.method == "POST"
        assert json.loads(req.content) == {"name": "Plan"}
        assert req.url.params["action"] == "create"

    def test_post_without_body_sends_empty_object(self, proxy_client, upstream):
        proxy_client.post("/")
        assert json.loads(upstream.calls[0].content) == {}

    def test_status_and_content_type_mirrored(self, proxy_client, upstream):
        upstream.status = 418
        upstream.content = b"short and stout"
        upstream.content_type = "text/plain; charset=utf-8"

        resp = proxy_client.get("/")

        assert resp.status_code == 418
        assert resp.text == "short and stout"
        assert resp.headers["content-type"].startswith("text/plain")


class TestFailures:
    def test_upstream_not_configured(self, settings, upstream):
        app = create_proxy_app(settings, transport=httpx.MockTransport(upstream.handler))
        resp = TestClient(app).get("/")

        assert resp.status_code == 500
        assert resp.json()["error"] == "upstream_url_not_set"
        assert upstream.calls == []

    def test_upstream_unreachable(self, settings):
        def boom(request):
            raise httpx.ConnectError("connection refused")

        configured = settings.model_copy(update={"upstream_url": "https://upstream.test/exec"})
        app = create_proxy_app(configured, transport=httpx.MockTransport(boom))
        resp = TestClient(app).get("/")

        assert resp.status_code == 500
        assert resp.json()["error"] == "upstream_error"

    def test_health_on_proxy(self, proxy_client, upstream):
        assert proxy_client.get("/health").json() == {"ok": True}
        assert upstream.calls == []
