"""Tests for the session event log and its JSONL export."""

from __future__ import annotations

from pathlib import Path

from framework.activity import CursorInfo
from framework.events import EventType, SessionEvent, events_for_run, read_jsonl, write_jsonl
from framework.serialize import json_dumps, to_serializable


def _event(event_type: EventType, run_token: int, **payload) -> SessionEvent:
    return SessionEvent.create(event_type, run_token=run_token, record_index=1, activity_index=2, payload=payload)


def test_events_round_trip_through_jsonl(tmp_path: Path) -> None:
    events = [
        _event(EventType.RUN_START, 1, record_id="r1", auto_started=False),
        _event(EventType.CURSOR, 1, raw=4, index=2, source="device"),
    ]
    path = tmp_path / "nested" / "events.jsonl"

    assert write_jsonl(path, events) == 2

    restored = list(read_jsonl(path))
    assert restored == events
    assert restored[0].selection == (1, 2)


def test_append_keeps_earlier_sessions(tmp_path: Path) -> None:
    path = tmp_path / "events.jsonl"

    write_jsonl(path, [_event(EventType.CANCEL, 1, reason="stop")])
    write_jsonl(path, [_event(EventType.CANCEL, 4, reason="switch")], append=True)

    assert [event.run_token for event in read_jsonl(path)] == [1, 4]


def test_events_for_run_filters_by_token() -> None:
    events = [_event(EventType.RUN_START, 1), _event(EventType.CANCEL, 2), _event(EventType.RUN_END, 1)]

    assert [event.event_type for event in events_for_run(events, 1)] == [EventType.RUN_START, EventType.RUN_END]


def test_from_dict_defaults_missing_selection() -> None:
    event = SessionEvent.from_dict({"event_type": "line", "run_token": 3})

    assert event.selection == (0, 0)
    assert event.payload == {}


def test_serialization_handles_dataclasses_sets_and_unicode() -> None:
    payload = {"info": CursorInfo(index=1, letter="é"), "letters": {"b", "a"}, "kind": EventType.LINE}

    assert to_serializable(payload) == {
        "info": {"index": 1, "letter": "é", "word": "", "source": "device"},
        "letters": ["a", "b"],
        "kind": "line",
    }
    assert "é" in json_dumps(payload)
