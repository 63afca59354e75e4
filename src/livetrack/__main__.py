"""Run the tracking server: ``python -m livetrack``."""

from __future__ import annotations

import argparse
import logging
from typing import Any

from aiohttp import web

from livetrack.config import TrackerConfig
from livetrack.exceptions import TrackerConfigError
from livetrack.web.app import create_app

_logger = logging.getLogger("livetrack")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="livetrack",
        description="Delivery webhook receiver with live order tracking updates.",
    )
    parser.add_argument("--host", help="Bind address (default: TRACKER_HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Listen port (default: TRACKER_PORT, PORT or 10000)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, Any] = {}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port

    try:
        config = TrackerConfig.from_env(**overrides)
    except TrackerConfigError as exc:
        parser.error(str(exc))

    if not config.bearer_key:
        _logger.warning("TRACKER_BEARER_KEY is not set; every webhook call will be rejected")

    web.run_app(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
