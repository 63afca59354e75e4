"""Runtime configuration for livetrack."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable
from typing import Any, TypeVar

from livetrack.exceptions import TrackerConfigError

T = TypeVar("T")


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, parse: Callable[[str], T]) -> T:
    try:
        return parse(value.strip())
    except ValueError as exc:
        raise TrackerConfigError(f"{env_key} must be numeric, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class TrackerConfig:
    """Tracking server configuration.

    Parameters
    ----------
    host : str
        Interface the HTTP server binds to.
    port : int
        TCP port the HTTP server listens on.
    bearer_key : str
        Shared secret expected in ``Authorization: Bearer <key>`` on every
        webhook call. When empty, all webhook calls are rejected.
    secret_key : str or None
        HMAC-SHA256 secret. Signatures are only checked when both this and
        a signature header are present.
    subscriber_queue_size : int
        Per-subscriber buffer of undelivered live updates. A subscriber
        whose buffer fills up is disconnected.
    heartbeat_interval : float
        Seconds between keepalive comments on idle live streams.
    state_retention : float
        Seconds after the last update before an order is evicted.
        ``0`` keeps orders for the process lifetime.
    mock_enabled : bool
        Expose the manual ``/api/mock`` injection endpoint.
    """

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 10000
    bearer_key: str = ""
    secret_key: str | None = None
    subscriber_queue_size: int = 64
    heartbeat_interval: float = 15.0
    state_retention: float = 0.0
    mock_enabled: bool = True

    def __post_init__(self) -> None:
        if not 0 < self.port < 65536:
            raise TrackerConfigError(f"port must be between 1 and 65535, got {self.port}")
        if self.subscriber_queue_size <= 0:
            raise TrackerConfigError("subscriber_queue_size must be positive")
        if self.heartbeat_interval <= 0:
            raise TrackerConfigError("heartbeat_interval must be positive")
        if self.state_retention < 0:
            raise TrackerConfigError("state_retention must not be negative")

    @classmethod
    def from_env(cls, **overrides: Any) -> TrackerConfig:
        """Create configuration from ``TRACKER_*`` environment variables.

        ``PORT`` is honoured as a fallback for ``TRACKER_PORT`` so the
        server runs unchanged on hosts that inject it. Explicit keyword
        arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        host = env.get("TRACKER_HOST")
        if host is not None:
            config_kwargs["host"] = host.strip()

        port = env.get("TRACKER_PORT") or env.get("PORT")
        if port is not None and "port" not in overrides:
            config_kwargs["port"] = _env_number("TRACKER_PORT", port, int)

        bearer = env.get("TRACKER_BEARER_KEY")
        if bearer is not None:
            config_kwargs["bearer_key"] = bearer.strip()

        secret = (env.get("TRACKER_SECRET_KEY") or "").strip()
        if secret:
            config_kwargs["secret_key"] = secret

        _ENV_NUMERIC_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
            "TRACKER_SUBSCRIBER_QUEUE_SIZE": ("subscriber_queue_size", int),
            "TRACKER_HEARTBEAT_INTERVAL": ("heartbeat_interval", float),
            "TRACKER_STATE_RETENTION": ("state_retention", float),
        }
        for env_key, (field_name, parse) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, parse)

        if "mock_enabled" not in overrides:
            config_kwargs["mock_enabled"] = _env_bool(env.get("TRACKER_MOCK_ENABLED"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
