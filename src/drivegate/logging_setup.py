# Console logging with Rich.
# Created: 2026-10-06

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

# Loggers that are noisy at INFO and only useful when debugging
_QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def setup_logging(level: str = "INFO") -> None:
    """Route all stdlib logging through a single Rich console handler."""
    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
        markup=False,
    )
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    if level.upper() != "DEBUG":
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
