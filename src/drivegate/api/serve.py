"""App factories and server runner for ``drivegate serve`` / ``drivegate proxy``.

``create_api_app`` builds the gateway: consent flow, tenant-gated Drive
endpoints, health and static routes.  ``create_proxy_app`` builds the
pass-through proxy that forwards ``/`` to a single upstream.  Both install the
same error handlers so every failure leaves as ``{"error", "detail"}``.
"""

from __future__ import annotations

import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from drivegate.config import Settings, get_settings
from drivegate.errors import GatewayError
from drivegate.integrations.token_store import CredentialStore, create_credential_store

logger = logging.getLogger(__name__)


async def _gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    else:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
        for err in exc.errors()
    )
    logger.warning("%s %s -> validation_error: %s", request.method, request.url.path, problems)
    return JSONResponse(
        status_code=400, content={"error": "validation_error", "detail": problems}
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "detail": "An unexpected error occurred."},
    )


def _install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GatewayError, _gateway_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)


def _install_cors(app: FastAPI, settings: Settings) -> None:
    origins = settings.cors_allowed_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers refuse credentialed responses with a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", settings.tenant_header],
    )


def create_api_app(
    settings: Settings | None = None,
    store: CredentialStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the gateway application.

    *store* overrides the configured credential store and *transport* is
    handed to every outbound httpx client (tests pass a MockTransport).
    """
    from drivegate.api.routes import mount_gateway_routers
    from drivegate.api.tenancy import create_tenant_resolver
    from drivegate.integrations.oauth import OAuthManager

    settings = settings or get_settings()
    if store is None:
        store = create_credential_store(settings.credential_store, settings.token_dir)

    app = FastAPI(
        title="DriveGate",
        description="Brokered Google Drive access for agent runtimes.",
        version="0.3.0",
        # /openapi.json is the hand-written action manifest (routes/static.py)
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url=None,
    )

    app.state.settings = settings
    app.state.oauth = OAuthManager.from_settings(settings, store, transport=transport)
    app.state.tenant_resolver = create_tenant_resolver(settings)

    _install_cors(app, settings)
    _install_error_handlers(app)
    mount_gateway_routers(app)

    logger.info(
        "Gateway ready (tenant mode: %s, credential store: %s)",
        settings.tenant_mode,
        type(store).__name__,
    )
    return app


def create_proxy_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the pass-through proxy application."""
    from drivegate.api.routes import health, proxy

    settings = settings or get_settings()
    app = FastAPI(title="DriveGate Proxy", openapi_url=None, docs_url=None, redoc_url=None)
    app.state.settings = settings
    app.state.upstream_transport = transport

    _install_error_handlers(app)
    app.include_router(health.router)
    app.include_router(proxy.router)

    if not settings.upstream_url:
        logger.warning("DRIVEGATE_UPSTREAM_URL not set; proxy requests will fail")
    return app


def run_server(
    mode: str = "serve",
    host: str = "127.0.0.1",
    port: int = 3000,
    dev: bool = False,
) -> None:
    """Start the gateway (``serve``) or the pass-through proxy (``proxy``)."""
    import uvicorn

    factory = "create_proxy_app" if mode == "proxy" else "create_api_app"
    label = "Proxy" if mode == "proxy" else "Drive gateway"
    logger.info("%s listening on http://%s:%s", label, host, port)

    if dev:
        import pathlib

        src_dir = str(pathlib.Path(__file__).resolve().parent.parent.parent)
        uvicorn.run(
            f"drivegate.api.serve:{factory}",
            factory=True,
            host=host,
            port=port,
            reload=True,
            reload_dirs=[src_dir],
            reload_includes=["*.py"],
            log_level="debug",
        )
    else:
        app = create_proxy_app() if mode == "proxy" else create_api_app()
        uvicorn.run(app, host=host, port=port)
