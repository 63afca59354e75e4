"""livetrack - delivery status webhooks in, live order tracking out."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("livetrack")
except PackageNotFoundError:
    __version__ = "0+local"
from livetrack.config import TrackerConfig
from livetrack.exceptions import (
    SubscriberClosedError,
    SubscriberDeliveryError,
    SubscriberOverflowError,
    TrackerAuthenticationError,
    TrackerConfigError,
    TrackerError,
    TrackerSignatureError,
)
from livetrack.hub.broadcast import BroadcastHub
from livetrack.hub.channel import QueueChannel
from livetrack.hub.registry import Subscriber, SubscriptionRegistry
from livetrack.ingestion.normalize import classify_status, normalize_payload
from livetrack.models import STATUS_LABELS, OrderState, OrderStatus, TimelineEntry
from livetrack.service import EventResult, TrackingService
from livetrack.state.events import EventSource, NormalizedEvent, OrderPatch
from livetrack.state.store import StateStore

__all__ = [
    "__version__",
    "BroadcastHub",
    "EventResult",
    "EventSource",
    "NormalizedEvent",
    "OrderPatch",
    "OrderState",
    "OrderStatus",
    "QueueChannel",
    "STATUS_LABELS",
    "StateStore",
    "Subscriber",
    "SubscriberClosedError",
    "SubscriberDeliveryError",
    "SubscriberOverflowError",
    "SubscriptionRegistry",
    "TimelineEntry",
    "TrackerAuthenticationError",
    "TrackerConfig",
    "TrackerConfigError",
    "TrackerError",
    "TrackerSignatureError",
    "TrackingService",
    "classify_status",
    "normalize_payload",
]
