"""Subscription bookkeeping."""

from __future__ import annotations

import logging
from typing import Any, Protocol

_logger = logging.getLogger(__name__)


class Subscriber(Protocol):
    """A live output channel for one viewer.

    ``send`` must not block. It raises when the message cannot be handed
    over (closed channel, full buffer).
    """

    def send(self, message: dict[str, Any]) -> None: ...


class SubscriptionRegistry:
    """Maps each order key to the set of live subscribers watching it.

    A subscriber watches at most one order at a time; subscribing it to a
    different key moves it. Keys whose last subscriber leaves are dropped.
    """

    def __init__(self) -> None:
        self._by_order: dict[str, set[Subscriber]] = {}
        self._order_of: dict[Subscriber, str] = {}

    def __len__(self) -> int:
        return len(self._order_of)

    def subscribe(self, key: str, subscriber: Subscriber) -> None:
        current = self._order_of.get(subscriber)
        if current == key:
            return
        if current is not None:
            self.unsubscribe(current, subscriber)
        self._by_order.setdefault(key, set()).add(subscriber)
        self._order_of[subscriber] = key
        _logger.debug("Subscribed order=%s subscribers=%d", key, len(self._by_order[key]))

    def unsubscribe(self, key: str, subscriber: Subscriber) -> None:
        subscribers = self._by_order.get(key)
        if subscribers is None or subscriber not in subscribers:
            return
        subscribers.discard(subscriber)
        self._order_of.pop(subscriber, None)
        if not subscribers:
            del self._by_order[key]
        _logger.debug("Unsubscribed order=%s subscribers=%d", key, len(subscribers))

    def subscribers_for(self, key: str) -> frozenset[Subscriber]:
        return frozenset(self._by_order.get(key, ()))

    def order_of(self, subscriber: Subscriber) -> str | None:
        return self._order_of.get(subscriber)

    def orders(self) -> list[str]:
        """Keys with at least one live subscriber."""
        return list(self._by_order)
