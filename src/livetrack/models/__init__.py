"""Order tracking models."""

from livetrack.models.order import STATUS_LABELS, OrderState, OrderStatus, TimelineEntry

__all__ = [
    "STATUS_LABELS",
    "OrderState",
    "OrderStatus",
    "TimelineEntry",
]
