"""In-memory per-order state store.

This is the only component allowed to merge incoming events. Records are
frozen pydantic models, so snapshots handed out by :meth:`StateStore.get`
can never be mutated behind the store's back.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from livetrack.ingestion.normalize import classify_status, timeline_label
from livetrack.models.order import OrderState, TimelineEntry
from livetrack.state.events import NormalizedEvent, OrderPatch

_logger = logging.getLogger(__name__)

StateListener = Callable[[str, OrderState], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class StateStore:
    """Authoritative mapping of order key to :class:`OrderState`.

    Merges run synchronously, so under asyncio a merge and the listener
    notifications it triggers complete before any other event is handled.
    Listeners therefore observe merges of one order in commit order.

    Parameters
    ----------
    clock
        Source of ``updatedAt`` and timeline timestamps.
    retention
        Orders not updated for this long are dropped by :meth:`prune`.
        ``None`` keeps them for the lifetime of the store.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], datetime] = _utcnow,
        retention: timedelta | None = None,
    ) -> None:
        self._clock = clock
        self._retention = retention
        self._orders: dict[str, OrderState] = {}
        self._listeners: list[StateListener] = []

    def __len__(self) -> int:
        return len(self._orders)

    def __contains__(self, key: object) -> bool:
        return key in self._orders

    def add_listener(self, listener: StateListener) -> None:
        """Call *listener* with ``(key, state)`` after every committed merge."""
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _now(self) -> datetime:
        now = self._clock()
        if now.tzinfo is None:
            return now.replace(tzinfo=UTC)
        return now

    def get(self, key: str) -> OrderState:
        """Stored state for *key*, or the default ``pending`` view."""
        state = self._orders.get(key)
        if state is None:
            return OrderState()
        return state

    def merge(self, key: str, patch: OrderPatch, timeline_label: str | None = None) -> OrderState:
        """Apply *patch* on top of the current state of *key*.

        Fields the patch leaves unset keep their previous value. A timeline
        entry is appended when *timeline_label* is given.
        """
        previous = self.get(key)

        now = self._now()
        # Never move updated_at backwards, even if the clock does.
        if previous.updated_at is not None and now < previous.updated_at:
            now = previous.updated_at

        timeline = previous.timeline
        if timeline_label:
            timeline = (*timeline, TimelineEntry(timestamp=now, label=timeline_label))

        state = previous.model_copy(update={**patch.changes(), "timeline": timeline, "updated_at": now})
        self._orders[key] = state
        _logger.debug("Merged order=%s status=%s timeline=%d", key, state.status, len(state.timeline))

        for listener in list(self._listeners):
            try:
                listener(key, state)
            except Exception:
                _logger.warning("State listener failed for order=%s", key, exc_info=True)
        return state

    def apply(self, event: NormalizedEvent) -> OrderState | None:
        """Merge a normalized event. Events without an order key are ignored."""
        if event.order is None:
            return None
        return self.merge(event.order, event.patch, event.timeline_label)

    def mock(self, key: str, raw_status: str) -> OrderState:
        """Inject a raw status by hand, bypassing payload field extraction."""
        status = classify_status(raw_status)
        return self.merge(key, OrderPatch(status=status), timeline_label(status))

    def prune(self) -> int:
        """Drop orders idle for longer than the retention window."""
        if self._retention is None:
            return 0
        cutoff = self._now() - self._retention
        expired = [
            key for key, state in self._orders.items() if state.updated_at is not None and state.updated_at < cutoff
        ]
        for key in expired:
            del self._orders[key]
        if expired:
            _logger.debug("Pruned %d idle orders", len(expired))
        return len(expired)
