# Router aggregation.
# Created: 2026-10-04
#
# mount_gateway_routers(app) registers every gateway router at the root path.
# The proxy router is separate: it owns "/" and only runs in proxy mode.

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fastapi import APIRouter, FastAPI

logger = logging.getLogger(__name__)

# (module_path, attr_name)
_GATEWAY_ROUTERS: list[tuple[str, str]] = [
    ("drivegate.api.routes.health", "router"),
    ("drivegate.api.routes.auth", "router"),
    ("drivegate.api.routes.drive", "router"),
    ("drivegate.api.routes.static", "router"),
]


def mount_gateway_routers(app: FastAPI) -> None:
    """Mount all gateway routers on *app*."""
    for module_path, attr_name in _GATEWAY_ROUTERS:
        mod = importlib.import_module(module_path)
        router: APIRouter = getattr(mod, attr_name)
        app.include_router(router)
        logger.debug("Mounted router: %s", module_path)
