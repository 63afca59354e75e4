from __future__ import annotations

import pytest

from livetrack.config import TrackerConfig
from livetrack.exceptions import TrackerConfigError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "PORT",
        "TRACKER_HOST",
        "TRACKER_PORT",
        "TRACKER_BEARER_KEY",
        "TRACKER_SECRET_KEY",
        "TRACKER_SUBSCRIBER_QUEUE_SIZE",
        "TRACKER_HEARTBEAT_INTERVAL",
        "TRACKER_STATE_RETENTION",
        "TRACKER_MOCK_ENABLED",
    ):
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    config = TrackerConfig.from_env()

    assert config.port == 10000
    assert config.bearer_key == ""
    assert config.secret_key is None
    assert config.state_retention == 0.0
    assert config.mock_enabled is True


def test_values_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("TRACKER_BEARER_KEY", "  key  ")
    monkeypatch.setenv("TRACKER_SECRET_KEY", "shh")
    monkeypatch.setenv("TRACKER_SUBSCRIBER_QUEUE_SIZE", "8")
    monkeypatch.setenv("TRACKER_STATE_RETENTION", "3600")
    monkeypatch.setenv("TRACKER_MOCK_ENABLED", "off")

    config = TrackerConfig.from_env()

    assert config.port == 8080
    assert config.bearer_key == "key"
    assert config.secret_key == "shh"
    assert config.subscriber_queue_size == 8
    assert config.state_retention == 3600.0
    assert config.mock_enabled is False


def test_tracker_port_beats_port_and_overrides_beat_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("TRACKER_PORT", "9090")

    assert TrackerConfig.from_env().port == 9090
    assert TrackerConfig.from_env(port=7070).port == 7070


def test_blank_secret_disables_hmac(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRACKER_SECRET_KEY", "   ")
    assert TrackerConfig.from_env().secret_key is None


def test_non_numeric_env_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRACKER_HEARTBEAT_INTERVAL", "soon")

    with pytest.raises(TrackerConfigError):
        TrackerConfig.from_env()


def test_invalid_values_rejected() -> None:
    with pytest.raises(TrackerConfigError):
        TrackerConfig(subscriber_queue_size=0)
    with pytest.raises(TrackerConfigError):
        TrackerConfig(state_retention=-1)


@pytest.mark.parametrize("port", [0, 70000])
def test_out_of_range_port_rejected(monkeypatch: pytest.MonkeyPatch, port: int) -> None:
    monkeypatch.setenv("TRACKER_PORT", str(port))

    with pytest.raises(TrackerConfigError, match="port"):
        TrackerConfig.from_env()
