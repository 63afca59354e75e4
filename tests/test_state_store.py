from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from livetrack.models.order import OrderState, OrderStatus
from livetrack.state.events import OrderPatch
from livetrack.state.store import StateStore


def _clock(*moments: datetime) -> Callable[[], datetime]:
    """Clock returning *moments* in order, then repeating the last one."""
    remaining = list(moments)

    def now() -> datetime:
        if len(remaining) > 1:
            return remaining.pop(0)
        return remaining[0]

    return now


def _dt(minute: int = 0) -> datetime:
    return datetime(2026, 1, 1, 12, minute, tzinfo=UTC)


def test_get_unknown_order_returns_pending_without_storing() -> None:
    store = StateStore()

    state = store.get("ZZZ")

    assert state == OrderState()
    assert state.status == OrderStatus.PENDING
    assert state.timeline == ()
    assert "ZZZ" not in store
    assert len(store) == 0


def test_merge_keeps_fields_the_patch_omits() -> None:
    store = StateStore(clock=_clock(_dt()))

    store.merge("T2", OrderPatch(driver_name="Ahmed", lat=1.0))
    state = store.merge("T2", OrderPatch(status=OrderStatus.ENROUTE, lat=2.0))

    assert state.driver_name == "Ahmed"
    assert state.status == OrderStatus.ENROUTE
    assert state.lat == 2.0
    assert store.get("T2") == state


def test_status_may_move_backwards() -> None:
    store = StateStore()

    store.merge("T1", OrderPatch(status=OrderStatus.NEARBY))
    state = store.merge("T1", OrderPatch(status=OrderStatus.ACCEPTED))

    assert state.status == OrderStatus.ACCEPTED


def test_timeline_appends_with_write_timestamp() -> None:
    store = StateStore(clock=_clock(_dt(1), _dt(2)))

    store.merge("T1", OrderPatch(status=OrderStatus.ACCEPTED), "Driver accepted your order")
    state = store.merge("T1", OrderPatch(), None)

    assert [entry.label for entry in state.timeline] == ["Driver accepted your order"]
    assert state.timeline[0].timestamp == _dt(1)
    assert state.updated_at == _dt(2)


def test_updated_at_never_moves_backwards() -> None:
    store = StateStore(clock=_clock(_dt(5), _dt(3)))

    store.merge("T1", OrderPatch(status=OrderStatus.ACCEPTED))
    state = store.merge("T1", OrderPatch(status=OrderStatus.ENROUTE), "Driver is on the way")

    assert state.updated_at == _dt(5)
    assert state.timeline[-1].timestamp == _dt(5)


def test_naive_clock_is_treated_as_utc() -> None:
    store = StateStore(clock=lambda: datetime(2026, 1, 1, 12, 0))

    state = store.merge("T1", OrderPatch())

    assert state.updated_at == _dt()


def test_replaying_same_patch_is_idempotent_except_timeline() -> None:
    store = StateStore(clock=_clock(_dt(1), _dt(2)))
    patch = OrderPatch(status=OrderStatus.NEARBY, lat=10.5, lng=106.7, eta_minutes=3)

    first = store.merge("T1", patch, "Driver is nearby")
    second = store.merge("T1", patch, "Driver is nearby")

    assert second.model_dump(exclude={"timeline", "updated_at"}) == first.model_dump(
        exclude={"timeline", "updated_at"}
    )
    assert len(second.timeline) == 2
    assert second.timeline[:1] == first.timeline


def test_orders_do_not_share_state() -> None:
    store = StateStore()

    store.merge("A", OrderPatch(driver_name="Ahmed"))
    store.merge("B", OrderPatch(status=OrderStatus.COMPLETED))

    assert store.get("A").status == OrderStatus.PENDING
    assert store.get("B").driver_name is None


def test_mock_applies_status_and_label_only() -> None:
    store = StateStore()
    store.merge("T1", OrderPatch(driver_name="Ahmed", eta_minutes=9))

    state = store.mock("T1", "Driver Accepted Order #4")

    assert state.status == OrderStatus.ACCEPTED
    assert state.timeline[-1].label == "Driver accepted your order"
    assert state.driver_name == "Ahmed"
    assert state.eta_minutes == 9


def test_mock_with_unrecognized_status_keeps_status() -> None:
    store = StateStore()
    store.mock("T1", "nearby")

    state = store.mock("T1", "gibberish")

    assert state.status == OrderStatus.NEARBY
    assert len(state.timeline) == 1


def test_listeners_receive_committed_state_in_order() -> None:
    store = StateStore()
    seen: list[tuple[str, OrderStatus]] = []
    store.add_listener(lambda key, state: seen.append((key, state.status)))

    store.merge("T1", OrderPatch(status=OrderStatus.ACCEPTED))
    store.merge("T1", OrderPatch(status=OrderStatus.ENROUTE))

    assert seen == [("T1", OrderStatus.ACCEPTED), ("T1", OrderStatus.ENROUTE)]


def test_failing_listener_does_not_break_merge() -> None:
    store = StateStore()
    seen: list[str] = []

    def broken(key: str, state: OrderState) -> None:
        raise RuntimeError("boom")

    store.add_listener(broken)
    store.add_listener(lambda key, state: seen.append(key))

    state = store.merge("T1", OrderPatch(status=OrderStatus.NEARBY))

    assert state.status == OrderStatus.NEARBY
    assert seen == ["T1"]


def test_prune_drops_idle_orders_only() -> None:
    moments = iter([_dt(0), _dt(30), _dt(40)])
    store = StateStore(clock=lambda: next(moments), retention=timedelta(minutes=15))

    store.merge("old", OrderPatch())
    store.merge("fresh", OrderPatch())

    assert store.prune() == 1
    assert "old" not in store
    assert "fresh" in store


def test_prune_without_retention_keeps_everything() -> None:
    store = StateStore()
    store.merge("T1", OrderPatch())

    assert store.prune() == 0
    assert "T1" in store
