"""
Overture MPD Server - Entry Point

Run with: python -m overture
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from overture import __version__
from overture.config import ConfigError, ServerConfig, load_server_config
from overture.protocol.vocabulary import VOCABULARY_MODES
from overture.server import OvertureServer


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="overture",
        description="Overture - an MPD protocol server",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to a TOML configuration file (default: bundled server.toml)",
    )

    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=None,
        help="MPD port (default: 6600)",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host address to bind to (default: 0.0.0.0)",
    )

    parser.add_argument(
        "--web-port",
        type=int,
        default=None,
        help="HTTP status API port, 0 to disable (default: 0)",
    )

    parser.add_argument(
        "--vocabulary",
        choices=VOCABULARY_MODES,
        default=None,
        help="Command vocabulary mode (default: strict)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ServerConfig:
    """Load the configuration file and apply command line overrides."""
    config = load_server_config(args.config)
    return config.with_overrides(
        host=args.host,
        port=args.port,
        web_port=args.web_port,
        vocabulary_mode=args.vocabulary,
    )


async def run_server(config: ServerConfig) -> None:
    """Start and run the Overture server."""
    server = OvertureServer(config)
    await server.run()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    logger = logging.getLogger(__name__)

    try:
        config = build_config(args)
    except (ConfigError, OSError) as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    logger.info("Starting Overture MPD Server...")

    try:
        asyncio.run(run_server(config))
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")
    except Exception as e:
        logger.exception("Fatal error: %s", e)
        return 1

    logger.info("Server stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
