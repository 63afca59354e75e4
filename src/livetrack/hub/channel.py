"""Buffered subscriber channel backed by an :class:`asyncio.Queue`."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any

from livetrack.exceptions import SubscriberClosedError, SubscriberOverflowError

_CLOSED = object()


class QueueChannel:
    """Subscriber whose ``send`` enqueues and whose reader awaits messages.

    ``send`` never blocks: once the consumer falls ``maxsize`` messages
    behind, the channel closes itself and raises
    :class:`SubscriberOverflowError`, which makes the hub drop it.
    """

    def __init__(self, *, maxsize: int = 64, order: str = "") -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        self._order = order

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, message: dict[str, Any]) -> None:
        if self._closed:
            raise SubscriberClosedError("channel is closed", order=self._order)
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull as exc:
            # The reader has fallen behind for good; end its stream so the
            # viewer reconnects and starts again from a fresh snapshot.
            self.close()
            raise SubscriberOverflowError(
                f"channel buffer full ({self._queue.maxsize} messages)",
                order=self._order,
            ) from exc

    def close(self) -> None:
        """Close the channel and wake a pending reader."""
        if self._closed:
            return
        self._closed = True
        # Make room for the wake-up marker; the reader is going away anyway.
        while self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    async def receive(self, timeout: float | None = None) -> dict[str, Any] | None:
        """Next message, or ``None`` once the channel is closed.

        Raises :class:`TimeoutError` if nothing arrives within *timeout*.
        """
        if self._closed and self._queue.empty():
            return None
        item = await asyncio.wait_for(self._queue.get(), timeout=timeout)
        if item is _CLOSED:
            return None
        return item

    async def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        while True:
            message = await self.receive()
            if message is None:
                return
            yield message
