"""Webhook payload normalization.

Upstream delivery platforms name the same facts differently (``task_id``
vs ``orderId``, a nested ``driver`` object vs flat ``driver_name``). This
module maps any of them onto an :class:`~livetrack.state.events.OrderPatch`.

Everything here is pure and defensive: malformed or missing fields degrade
to "field omitted", never to an exception.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from livetrack.models.order import STATUS_LABELS, OrderStatus
from livetrack.state.events import EventSource, NormalizedEvent, OrderPatch

# Tried in order; the first non-empty value is the order key.
ORDER_KEY_FIELDS: tuple[str, ...] = (
    "task_id",
    "taskId",
    "reference",
    "order_id",
    "orderId",
    "job_id",
    "jobId",
    "tracking_code",
    "trackingCode",
)

STATUS_FIELDS: tuple[str, ...] = ("status", "task_status", "taskStatus", "state")

_SEP = r"[\s_\-]*"

# First match wins.
STATUS_RULES: tuple[tuple[re.Pattern[str], OrderStatus], ...] = (
    (re.compile(r"accept|assigned"), OrderStatus.ACCEPTED),
    (re.compile(rf"start|en{_SEP}route|on{_SEP}the{_SEP}way|dispatched"), OrderStatus.ENROUTE),
    (re.compile(r"nearby|arriving"), OrderStatus.NEARBY),
    (re.compile(r"delivered|completed|success"), OrderStatus.COMPLETED),
)

_MINUTES_TEXT = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(?:m|mins?|minutes?)\b", re.IGNORECASE)


def safe_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool) or value == "":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_text(value: Any) -> str | None:
    """Non-empty trimmed text from a string or number; anything else is None."""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    try:
        text = str(value).strip()
    except ValueError:
        # Integers past the interpreter's digit limit.
        return None
    return text or None


def safe_latitude(value: Any) -> float | None:
    parsed = safe_float(value)
    if parsed is None or not -90.0 <= parsed <= 90.0:
        return None
    return parsed


def safe_longitude(value: Any) -> float | None:
    parsed = safe_float(value)
    if parsed is None or not -180.0 <= parsed <= 180.0:
        return None
    return parsed


def safe_minutes(value: Any) -> int | None:
    """Whole minutes from ``12``, ``"12"`` or ``"12 min"``."""
    parsed = safe_float(value)
    if parsed is None and isinstance(value, str):
        match = _MINUTES_TEXT.match(value)
        if match:
            parsed = float(match.group(1))
    if parsed is None or parsed < 0:
        return None
    return round(parsed)


@dataclass(frozen=True)
class FieldRule:
    """Where to find one canonical patch field and how to coerce it.

    ``paths`` are tried in order; each path is a sequence of mapping keys
    (``("driver", "name")`` reads ``payload["driver"]["name"]``). The first
    path whose coerced value is not ``None`` wins.
    """

    field: str
    paths: tuple[tuple[str, ...], ...]
    coerce: Callable[[Any], Any]


FIELD_RULES: tuple[FieldRule, ...] = (
    FieldRule(
        "driver_name",
        (("driver", "name"), ("driver_name",), ("driverName",), ("driver",)),
        safe_text,
    ),
    FieldRule(
        "driver_phone",
        (("driver", "phone"), ("driver_phone",), ("driverPhone",), ("phone",)),
        safe_text,
    ),
    FieldRule(
        "lat",
        (("location", "lat"), ("driver", "lat"), ("lat",), ("latitude",)),
        safe_latitude,
    ),
    FieldRule(
        "lng",
        (("location", "lng"), ("driver", "lng"), ("lng",), ("longitude",), ("lon",)),
        safe_longitude,
    ),
    FieldRule(
        "eta_minutes",
        (("eta_minutes",), ("etaMinutes",), ("eta",)),
        safe_minutes,
    ),
)


def _resolve_path(data: Mapping[str, Any], path: tuple[str, ...]) -> Any:
    current: Any = data
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def extract_field(data: Mapping[str, Any], paths: tuple[tuple[str, ...], ...], coerce: Callable[[Any], Any]) -> Any:
    """Generic extraction routine behind :data:`FIELD_RULES`."""
    for path in paths:
        value = coerce(_resolve_path(data, path))
        if value is not None:
            return value
    return None


def flatten_envelope(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Lift keys of a nested ``data`` object next to the top-level keys.

    Nested values win, since envelope keys (``event``, ``id``) describe the
    delivery rather than the order.
    """
    merged = {str(key): value for key, value in payload.items()}
    nested = merged.get("data")
    if isinstance(nested, Mapping):
        merged.update({str(key): value for key, value in nested.items()})
    return merged


def extract_order_key(payload: Mapping[str, Any]) -> str | None:
    for field in ORDER_KEY_FIELDS:
        key = safe_text(payload.get(field))
        if key is not None:
            return key
    return None


def extract_raw_status(payload: Mapping[str, Any]) -> str | None:
    for field in STATUS_FIELDS:
        raw = safe_text(payload.get(field))
        if raw is not None:
            return raw
    return None


def classify_status(raw: Any) -> OrderStatus | None:
    """Classify free-text upstream status, or ``None`` if unrecognized."""
    text = safe_text(raw)
    if text is None:
        return None
    lowered = text.lower()
    for pattern, status in STATUS_RULES:
        if pattern.search(lowered):
            return status
    return None


def timeline_label(status: OrderStatus | None) -> str | None:
    if status is None:
        return None
    return STATUS_LABELS.get(status)


def normalize_payload(
    payload: Any,
    *,
    event_name: str | None = None,
    source: EventSource = EventSource.WEBHOOK,
) -> NormalizedEvent:
    """Translate an upstream payload into a :class:`NormalizedEvent`.

    When the payload carries no status field, ``event_name`` (the webhook
    event, e.g. ``task_completed``) is classified instead.
    """
    if not isinstance(payload, Mapping):
        return NormalizedEvent(source=source, event_name=event_name)

    fields = flatten_envelope(payload)
    raw_status = extract_raw_status(fields) or safe_text(event_name)
    status = classify_status(raw_status)

    changes: dict[str, Any] = {}
    for rule in FIELD_RULES:
        value = extract_field(fields, rule.paths, rule.coerce)
        if value is not None:
            changes[rule.field] = value

    return NormalizedEvent(
        order=extract_order_key(fields),
        source=source,
        event_name=event_name,
        raw_status=raw_status,
        patch=OrderPatch(status=status, **changes),
        timeline_label=timeline_label(status),
        raw={str(key): value for key, value in payload.items()},
    )
