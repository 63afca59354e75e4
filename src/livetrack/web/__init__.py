"""aiohttp HTTP adapter for the tracking service."""

from livetrack.web.app import create_app

__all__ = ["create_app"]
