"""Helpers for safe debug logging.

Webhook bodies carry driver contact details and inbound requests carry
bearer tokens and HMAC signatures. Everything logged at DEBUG level goes
through :func:`redact_for_log` first.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

# Compared after lower-casing and dropping "-" / "_".
_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "authorization",
        "token",
        "accesstoken",
        "secret",
        "secretkey",
        "signature",
        "xsignature",
        "xwebhooksignature",
        "xhubsignature256",
        "phone",
        "driverphone",
        "mobile",
    }
)

_REDACTED = "<redacted>"


def _is_sensitive(key: str) -> bool:
    return key.lower().replace("-", "").replace("_", "") in _SENSITIVE_KEYS


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        if value[:7].lower() == "bearer ":
            return f"Bearer {_REDACTED}"
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        return {
            str(k): _REDACTED if _is_sensitive(str(k)) else redact_for_log(v, max_string=max_string, _depth=_depth + 1)
            for k, v in value.items()
        }

    if isinstance(value, Sequence):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
