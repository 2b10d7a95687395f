"""DriveGate entry point.

Examples:
  drivegate serve                    Start the Drive gateway
  drivegate proxy                    Start the pass-through proxy
  drivegate serve --port 8080 --dev  Gateway with auto-reload
"""

import argparse
import logging
from importlib.metadata import version as get_version

from drivegate.config import get_settings
from drivegate.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="DriveGate - brokered Google Drive access for agent runtimes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("\n\n", 1)[1],
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="serve",
        choices=["serve", "proxy"],
        help="'serve' runs the gateway (default), 'proxy' the pass-through proxy",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind (default: DRIVEGATE_HOST or 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        "-p",
        type=int,
        default=None,
        help="Port to bind (default: DRIVEGATE_PORT or 3000)",
    )
    parser.add_argument("--dev", action="store_true", help="Development mode with auto-reload")
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"%(prog)s {get_version('drivegate')}",
    )

    args = parser.parse_args()

    setup_logging(level="DEBUG" if args.dev else "INFO")
    settings = get_settings()
    if not args.dev and settings.log_level.upper() != "INFO":
        setup_logging(level=settings.log_level)

    from drivegate.api.serve import run_server

    try:
        run_server(
            mode=args.command,
            host=args.host or settings.host,
            port=args.port or settings.port,
            dev=args.dev,
        )
    except KeyboardInterrupt:
        logger.info("DriveGate stopped.")


if __name__ == "__main__":
    main()
