"""Canonical order tracking state.

:class:`OrderState` is what queries return and what live subscribers
receive. Field names are snake_case in Python and camelCase on the wire
(``alias_generator=to_camel``), so ``eta_minutes`` is published as
``etaMinutes``.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class OrderStatus(StrEnum):
    """Canonical delivery status taxonomy."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    ENROUTE = "enroute"
    NEARBY = "nearby"
    COMPLETED = "completed"


STATUS_LABELS: dict[OrderStatus, str] = {
    OrderStatus.ACCEPTED: "Driver accepted your order",
    OrderStatus.ENROUTE: "Driver is on the way",
    OrderStatus.NEARBY: "Driver is nearby",
    OrderStatus.COMPLETED: "Order delivered",
}
"""Human-readable timeline label per status. ``pending`` has none."""


class _WireModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class TimelineEntry(_WireModel):
    """One milestone in an order's timeline."""

    timestamp: datetime
    label: str


class OrderState(_WireModel):
    """Authoritative tracking record for one order.

    Every field except ``status`` and ``timeline`` is optional. A default
    instance is the ``pending`` view returned for orders with no events.
    """

    status: OrderStatus = OrderStatus.PENDING
    driver_name: str | None = None
    driver_phone: str | None = None
    lat: float | None = None
    lng: float | None = None
    eta_minutes: int | None = None
    timeline: tuple[TimelineEntry, ...] = Field(default_factory=tuple)
    updated_at: datetime | None = None

    def to_payload(self, order: str) -> dict[str, Any]:
        """Flat JSON-ready dict: ``order`` plus every populated field."""
        payload: dict[str, Any] = {"order": order}
        payload.update(self.model_dump(mode="json", by_alias=True, exclude_none=True))
        return payload
