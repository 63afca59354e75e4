"""Normalized ingestion events.

Every entry point (webhooks, manual mock injection) converts its input into
these events. Only the state/store layer is allowed to merge them.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from livetrack.models.order import OrderStatus


class EventSource(StrEnum):
    WEBHOOK = "webhook"
    MOCK = "mock"


class OrderPatch(BaseModel):
    """Partial update to an order. ``None`` means "leave unchanged"."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status: OrderStatus | None = None
    driver_name: str | None = None
    driver_phone: str | None = None
    lat: float | None = None
    lng: float | None = None
    eta_minutes: int | None = None

    def changes(self) -> dict[str, Any]:
        """Fields this patch actually sets."""
        return self.model_dump(exclude_none=True)


class NormalizedEvent(BaseModel):
    """Result of normalizing one upstream payload."""

    model_config = ConfigDict(frozen=True)

    order: str | None = Field(default=None, description="Order key, or None when the payload has none")
    source: EventSource = EventSource.WEBHOOK
    event_name: str | None = None
    raw_status: str | None = None
    patch: OrderPatch = Field(default_factory=OrderPatch)
    timeline_label: str | None = None
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    raw: dict[str, Any] = Field(default_factory=dict, description="Original payload (as received)")
