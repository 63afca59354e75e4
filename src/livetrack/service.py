"""Order tracking service.

Wires the normalizer, the state store and the broadcast hub together and
exposes the operations the HTTP layer (or any other transport) calls.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict

from livetrack._redact import redact_for_log
from livetrack.hub.broadcast import BroadcastHub
from livetrack.hub.registry import Subscriber, SubscriptionRegistry
from livetrack.ingestion.normalize import normalize_payload
from livetrack.models.order import OrderState
from livetrack.state.store import StateStore, _utcnow

_logger = logging.getLogger(__name__)

REASON_NO_KEY = "no key"


class EventResult(BaseModel):
    """Outcome of :meth:`TrackingService.process_event`."""

    model_config = ConfigDict(frozen=True)

    accepted: bool
    reason: str | None = None
    order: str | None = None


class TrackingService:
    """Facade over the order tracking core.

    Usage::

        service = TrackingService()
        service.process_event({"task_id": "T1", "status": "nearby"})
        service.query_state("T1").status  # OrderStatus.NEARBY
    """

    def __init__(
        self,
        *,
        store: StateStore | None = None,
        registry: SubscriptionRegistry | None = None,
        clock: Callable[[], datetime] = _utcnow,
        retention: timedelta | None = None,
    ) -> None:
        self._store = store if store is not None else StateStore(clock=clock, retention=retention)
        self._hub = BroadcastHub(self._store, registry)

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def hub(self) -> BroadcastHub:
        return self._hub

    def process_event(self, payload: Mapping[str, Any], *, event_name: str | None = None) -> EventResult:
        """Normalize *payload*, merge it and broadcast the new state.

        A payload without a recognizable order key is a no-op, reported
        as ``accepted=False, reason="no key"``.
        """
        event = normalize_payload(payload, event_name=event_name)
        if event.order is None:
            _logger.info("Ignoring event=%s without order key", event_name)
            _logger.debug("Ignored payload: %s", redact_for_log(event.raw))
            return EventResult(accepted=False, reason=REASON_NO_KEY)

        if event.patch.status is None and event.raw_status is not None:
            _logger.debug("Unrecognized status %r for order=%s", event.raw_status, event.order)

        self._store.apply(event)
        return EventResult(accepted=True, order=event.order)

    def query_state(self, key: str) -> OrderState:
        return self._store.get(key)

    def subscribe(self, key: str, channel: Subscriber) -> None:
        """Attach a live channel to *key*; it immediately gets the snapshot."""
        self._hub.on_connect(key, channel)

    def unsubscribe(self, key: str, channel: Subscriber) -> None:
        self._hub.on_disconnect(key, channel)

    def mock_event(self, key: str, raw_status: str) -> OrderState:
        """Inject a raw status for *key* by hand (testing/demo)."""
        _logger.info("Mock event order=%s status=%r", key, raw_status)
        return self._store.mock(key, raw_status)

    def prune(self) -> int:
        return self._store.prune()
