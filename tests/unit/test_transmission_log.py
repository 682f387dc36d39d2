# pylint: disable=missing-module-docstring,missing-function-docstring

from typing import Any

import pytest

from context import transmission_log
from context.transmission_log import Origin, TransmissionLog, TransmissionMetadata


def test_append_preserves_order_and_assigns_ids():
    log = TransmissionLog()
    a = log.append(Origin.OPERATOR, "We reject", timestamp=10)
    b = log.append(Origin.AGENT, "Noted", timestamp=20)

    assert log.snapshot() == (a, b)
    assert a.id != b.id


def test_earlier_timestamp_is_clamped(monkeypatch: pytest.MonkeyPatch):
    events: list[dict[str, Any]] = []
    monkeypatch.setattr(transmission_log, "log_event", events.append)

    log = TransmissionLog()
    log.append(Origin.OPERATOR, "first", timestamp=100)
    late = log.append(Origin.AGENT, "second", timestamp=50)

    assert late.timestamp == 100
    assert [v.payload for v in log.snapshot()] == ["first", "second"]
    assert events[0]["event_type"] == "transmission_timestamp_clamped"


def test_to_dict_includes_metadata_only_when_present():
    log = TransmissionLog()
    plain = log.append(Origin.OPERATOR, "hi", timestamp=1)
    rich = log.append(
        Origin.AGENT,
        "counter",
        timestamp=2,
        metadata=TransmissionMetadata(thinking_duration_ms=120, model_used="m", token_consumption=42),
    )

    assert "metadata" not in plain.to_dict()
    assert rich.to_dict()["metadata"] == {
        "thinkingDurationMs": 120,
        "modelUsed": "m",
        "tokenConsumption": 42,
    }
    assert rich.to_dict()["origin"] == "AGENT"


def test_clear_and_snapshot_isolation():
    log = TransmissionLog()
    log.append(Origin.OPERATOR, "hi")
    snap = log.snapshot()

    log.clear()

    assert len(log) == 0
    assert len(snap) == 1
