"""Tests for the order state wire format."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from livetrack.models.order import STATUS_LABELS, OrderState, OrderStatus, TimelineEntry


class TestOrderStatus:
    def test_values(self) -> None:
        assert [s.value for s in OrderStatus] == ["pending", "accepted", "enroute", "nearby", "completed"]

    def test_every_status_but_pending_has_a_label(self) -> None:
        assert set(STATUS_LABELS) == set(OrderStatus) - {OrderStatus.PENDING}


class TestOrderState:
    def test_payload_is_flat_and_camel_cased(self) -> None:
        ts = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
        state = OrderState(
            status=OrderStatus.ENROUTE,
            driver_name="Ahmed",
            driver_phone="+9651852000",
            eta_minutes=12,
            timeline=(TimelineEntry(timestamp=ts, label="Driver is on the way"),),
            updated_at=ts,
        )

        assert state.to_payload("T1") == {
            "order": "T1",
            "status": "enroute",
            "driverName": "Ahmed",
            "driverPhone": "+9651852000",
            "etaMinutes": 12,
            "timeline": [{"timestamp": "2026-01-01T12:00:00Z", "label": "Driver is on the way"}],
            "updatedAt": "2026-01-01T12:00:00Z",
        }

    def test_accepts_wire_aliases(self) -> None:
        state = OrderState.model_validate({"status": "nearby", "driverName": "Ahmed", "etaMinutes": 3})

        assert state.status == OrderStatus.NEARBY
        assert state.driver_name == "Ahmed"
        assert state.eta_minutes == 3

    def test_frozen(self) -> None:
        state = OrderState()
        with pytest.raises(ValidationError):
            state.status = OrderStatus.COMPLETED  # type: ignore[misc]
