"""Push order snapshots to live subscribers."""

from __future__ import annotations

import logging
from typing import Any

from livetrack.hub.registry import Subscriber, SubscriptionRegistry
from livetrack.models.order import OrderState
from livetrack.state.store import StateStore

_logger = logging.getLogger(__name__)


class BroadcastHub:
    """Fan-out of committed order state to subscribed channels.

    The hub registers itself as a :class:`StateStore` listener, so every
    merge (webhook or mock) is broadcast without the caller doing anything.
    """

    def __init__(self, store: StateStore, registry: SubscriptionRegistry | None = None) -> None:
        self._store = store
        self._registry = registry if registry is not None else SubscriptionRegistry()
        store.add_listener(self.on_state_change)

    @property
    def registry(self) -> SubscriptionRegistry:
        return self._registry

    def close(self) -> None:
        """Stop listening to the store."""
        self._store.remove_listener(self.on_state_change)

    def on_connect(self, key: str, subscriber: Subscriber) -> None:
        """Register *subscriber* and send it the current snapshot."""
        self._registry.subscribe(key, subscriber)
        self._deliver(key, subscriber, self._store.get(key).to_payload(key))

    def on_disconnect(self, key: str, subscriber: Subscriber) -> None:
        self._registry.unsubscribe(key, subscriber)

    def on_state_change(self, key: str, state: OrderState) -> None:
        """Send *state* to every subscriber of *key*."""
        subscribers = self._registry.subscribers_for(key)
        if not subscribers:
            return
        message = state.to_payload(key)
        delivered = 0
        for subscriber in subscribers:
            if self._deliver(key, subscriber, message):
                delivered += 1
        _logger.debug("Broadcast order=%s delivered=%d/%d", key, delivered, len(subscribers))

    def _deliver(self, key: str, subscriber: Subscriber, message: dict[str, Any]) -> bool:
        try:
            subscriber.send(message)
        except Exception:
            # One broken channel must not affect the others.
            _logger.info("Dropping subscriber of order=%s after failed delivery", key, exc_info=True)
            self._registry.unsubscribe(key, subscriber)
            return False
        return True
