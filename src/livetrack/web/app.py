"""HTTP routes: webhook intake, tracking queries and live update streams."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import AsyncIterator
from datetime import timedelta
from typing import Any

from aiohttp import web

from livetrack._redact import redact_for_log
from livetrack.config import TrackerConfig
from livetrack.exceptions import TrackerAuthenticationError, TrackerSignatureError
from livetrack.hub.channel import QueueChannel
from livetrack.service import TrackingService
from livetrack.web.auth import authenticate_webhook, verify_bearer

_logger = logging.getLogger(__name__)

CONFIG_KEY = web.AppKey("config", TrackerConfig)
SERVICE_KEY = web.AppKey("service", TrackingService)

_PRUNE_INTERVAL_MAX_S = 60.0


def _sse_frame(message: dict[str, Any]) -> bytes:
    return f"data: {json.dumps(message, separators=(',', ':'))}\n\n".encode()


def _order_param(request: web.Request) -> str | None:
    return (request.query.get("order") or "").strip() or None


def _parse_json_object(body: bytes) -> dict[str, Any] | None:
    """Decode a JSON object body; an empty body is ``{}``."""
    if not body.strip():
        return {}
    try:
        decoded = json.loads(body)
    except ValueError:
        return None
    return decoded if isinstance(decoded, dict) else None


async def handle_health(request: web.Request) -> web.Response:
    return web.Response(text="livetrack running")


async def handle_webhook(request: web.Request) -> web.Response:
    config = request.app[CONFIG_KEY]
    event = request.match_info["event"]
    body = await request.read()

    try:
        authenticate_webhook(
            request.headers,
            body,
            bearer_key=config.bearer_key,
            secret_key=config.secret_key,
        )
    except TrackerSignatureError:
        _logger.warning("Rejected webhook event=%s: bad signature", event)
        return web.Response(status=401, text="Bad signature")
    except TrackerAuthenticationError:
        _logger.warning("Rejected webhook event=%s: unauthorized", event)
        return web.Response(status=401, text="Unauthorized")

    payload = _parse_json_object(body)
    if payload is None:
        return web.json_response({"ok": False, "error": "body must be a JSON object"}, status=400)

    _logger.info("Received webhook event=%s (%s)", event, request.method)
    _logger.debug("Webhook body: %s", redact_for_log(payload))

    result = request.app[SERVICE_KEY].process_event(payload, event_name=event)
    return web.json_response({"ok": True, **result.model_dump(exclude_none=True)})


async def handle_tracking(request: web.Request) -> web.Response:
    order = _order_param(request)
    if order is None:
        return web.json_response({"error": "missing order"}, status=400)
    state = request.app[SERVICE_KEY].query_state(order)
    return web.json_response(state.to_payload(order))


async def handle_stream(request: web.Request) -> web.StreamResponse:
    """Server-Sent Events: the current snapshot, then one frame per update."""
    order = _order_param(request)
    if order is None:
        return web.json_response({"error": "missing order"}, status=400)

    config = request.app[CONFIG_KEY]
    service = request.app[SERVICE_KEY]

    response = web.StreamResponse(
        headers={
            "Content-Type": "text/event-stream",
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        }
    )
    await response.prepare(request)

    channel = QueueChannel(maxsize=config.subscriber_queue_size, order=order)
    service.subscribe(order, channel)
    try:
        while True:
            try:
                message = await channel.receive(timeout=config.heartbeat_interval)
            except TimeoutError:
                # A write to a dead connection raises and ends the stream.
                await response.write(b": keepalive\n\n")
                continue
            if message is None:
                break
            await response.write(_sse_frame(message))
    except ConnectionResetError:
        _logger.debug("Live stream for order=%s closed by client", order)
    finally:
        service.unsubscribe(order, channel)
        channel.close()
    return response


async def handle_mock(request: web.Request) -> web.Response:
    config = request.app[CONFIG_KEY]
    if not config.mock_enabled:
        raise web.HTTPNotFound()

    try:
        verify_bearer(request.headers.get("Authorization"), config.bearer_key)
    except TrackerAuthenticationError:
        return web.Response(status=401, text="Unauthorized")

    body = _parse_json_object(await request.read())
    if body is None:
        return web.json_response({"ok": False, "error": "body must be a JSON object"}, status=400)

    order = str(body.get("order") or request.query.get("order") or "").strip()
    raw_status = str(body.get("status") or request.query.get("status") or "").strip()
    if not order or not raw_status:
        return web.json_response({"ok": False, "error": "order and status are required"}, status=400)

    state = request.app[SERVICE_KEY].mock_event(order, raw_status)
    return web.json_response({"ok": True, **state.to_payload(order)})


async def _prune_periodically(service: TrackingService, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            service.prune()
        except Exception:
            _logger.warning("Order pruning failed", exc_info=True)


async def _retention_ctx(app: web.Application) -> AsyncIterator[None]:
    retention = app[CONFIG_KEY].state_retention
    if retention <= 0:
        yield
        return

    task = asyncio.create_task(_prune_periodically(app[SERVICE_KEY], min(retention, _PRUNE_INTERVAL_MAX_S)))
    yield
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


def create_app(config: TrackerConfig | None = None, service: TrackingService | None = None) -> web.Application:
    """Build the aiohttp application.

    Parameters
    ----------
    config
        Server configuration. Defaults to :meth:`TrackerConfig.from_env`.
    service
        Tracking core to serve. A fresh in-memory one is created when omitted.
    """
    if config is None:
        config = TrackerConfig.from_env()
    if service is None:
        retention = timedelta(seconds=config.state_retention) if config.state_retention > 0 else None
        service = TrackingService(retention=retention)

    app = web.Application()
    app[CONFIG_KEY] = config
    app[SERVICE_KEY] = service
    app.cleanup_ctx.append(_retention_ctx)

    app.router.add_get("/", handle_health)
    app.router.add_route("*", "/webhooks/{event}", handle_webhook)
    app.router.add_get("/api/tracking", handle_tracking)
    app.router.add_get("/api/tracking/stream", handle_stream)
    app.router.add_post("/api/mock", handle_mock)
    return app
