from __future__ import annotations

from livetrack._redact import redact_for_log


def test_redact_for_log_masks_contact_and_credentials() -> None:
    payload = {
        "task_id": "T1",
        "driver": {"name": "Ahmed", "phone": "+9651852000"},
        "driver_phone": "+9651852000",
        "X-Hub-Signature-256": "sha256=abc",
        "Authorization": "Bearer s3cret",
    }

    redacted = redact_for_log(payload)
    assert redacted["task_id"] == "T1"
    assert redacted["driver"] == {"name": "Ahmed", "phone": "<redacted>"}
    assert redacted["driver_phone"] == "<redacted>"
    assert redacted["X-Hub-Signature-256"] == "<redacted>"
    assert redacted["Authorization"] == "<redacted>"


def test_redact_for_log_masks_bearer_values_under_any_key() -> None:
    assert redact_for_log({"note": "bearer abc"}) == {"note": "Bearer <redacted>"}


def test_redact_for_log_truncates_long_strings() -> None:
    redacted = redact_for_log({"value": "x" * 600}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]
