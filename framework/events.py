"""Session event log: what happened to which run, on which record and activity."""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from time import time
from typing import Any

from .serialize import json_dumps, to_serializable


class EventType(str, Enum):
    """Event types emitted by the session controller."""

    RUN_START = "run_start"
    RUN_END = "run_end"
    CANCEL = "cancel"
    LINE = "line"
    CURSOR = "cursor"
    ADVANCE = "advance"


@dataclass(frozen=True)
class SessionEvent:
    """One controller event, stamped with the run token and the selection it applied to."""

    event_type: EventType
    run_token: int
    record_index: int
    activity_index: int
    timestamp_ms: int = 0
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def selection(self) -> tuple[int, int]:
        return self.record_index, self.activity_index

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "run_token": self.run_token,
            "record_index": self.record_index,
            "activity_index": self.activity_index,
            "timestamp_ms": self.timestamp_ms,
            "payload": to_serializable(self.payload),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SessionEvent":
        return cls(
            event_type=EventType(str(data["event_type"])),
            run_token=int(data["run_token"]),
            record_index=int(data.get("record_index", 0)),
            activity_index=int(data.get("activity_index", 0)),
            timestamp_ms=int(data.get("timestamp_ms", 0)),
            payload=dict(data.get("payload") or {}),
        )

    @classmethod
    def create(
        cls,
        event_type: EventType,
        *,
        run_token: int,
        record_index: int,
        activity_index: int,
        payload: dict[str, Any] | None = None,
    ) -> "SessionEvent":
        """Stamp an event with the current wall-clock time."""
        return cls(
            event_type=event_type,
            run_token=run_token,
            record_index=record_index,
            activity_index=activity_index,
            timestamp_ms=int(time() * 1000),
            payload=payload or {},
        )


def events_for_run(events: Iterable[SessionEvent], run_token: int) -> list[SessionEvent]:
    """Return the events stamped with ``run_token``, in order."""
    return [event for event in events if event.run_token == run_token]


def write_jsonl(path: str | Path, events: Iterable[SessionEvent], *, append: bool = False) -> int:
    """Write events as JSON lines; returns the number of lines written."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with output_path.open("a" if append else "w", encoding="utf-8") as handle:
        for event in events:
            handle.write(json_dumps(event.to_dict()))
            handle.write("\n")
            count += 1
    return count


def read_jsonl(path: str | Path) -> Iterator[SessionEvent]:
    """Yield events from a JSON-lines file, skipping blank lines."""
    with Path(path).open(encoding="utf-8") as handle:
        for line in handle:
            if line.strip():
                yield SessionEvent.from_dict(json.loads(line))
