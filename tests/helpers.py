"""Fakes and helpers shared by the session and activity tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from framework.activity import ActivityContext
from framework.line import LineState
from framework.records import Record
from framework.services import AudioService, DisplayTransport


class RecordingAudio(AudioService):
    """Records every requested sound; optional per-name failures and delays."""

    def __init__(self, *, delay_sec: float = 0.0) -> None:
        self.played: list[str] = []
        self.delay_sec = delay_sec
        self.failing: set[str] = set()

    async def play(self, name: str) -> None:
        self.played.append(name)
        if self.delay_sec:
            await asyncio.sleep(self.delay_sec)
        if name in self.failing:
            raise RuntimeError(f"cannot decode {name}")


class RecordingDisplay(DisplayTransport):
    def __init__(self) -> None:
        self.lines: list[str] = []
        self.fail = False

    async def send_line(self, text: str) -> None:
        if self.fail:
            raise ConnectionError("display unplugged")
        self.lines.append(text)


class LineSink:
    """Collects lines pushed through an ``ActivityContext``."""

    def __init__(self) -> None:
        self.lines: list[LineState] = []
        self.sounds: list[str] = []

    async def push_line(self, line: LineState) -> None:
        self.lines.append(line)

    async def play(self, name: str) -> None:
        self.sounds.append(name)

    @property
    def last(self) -> LineState:
        return self.lines[-1]


async def until(predicate: Callable[[], bool], timeout_sec: float = 2.0) -> None:
    """Yield to the loop until ``predicate`` holds; fail the test on timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_sec
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


def make_context(record: Record, activity_index: int = 0, sink: LineSink | None = None) -> ActivityContext:
    descriptor = record.activities[activity_index]
    target = sink or LineSink()
    return ActivityContext(
        record=record,
        activity=descriptor,
        activity_key=descriptor.id,
        activity_index=activity_index,
        push_line=target.push_line,
        play=target.play,
    )


SAMPLE_RECORDS: list[dict[str, Any]] = [
    {
        "id": "r1",
        "word": "maan",
        "knownLetters": ["m", "a", "s"],
        "letters": ["m", "a", "n"],
        "activities": [
            {"id": "pairletters", "caption": "Paren", "instruction": "intro.mp3", "nrof": 2, "lineLen": 5},
            {"id": "letters", "caption": "Letters", "instruction": "-"},
        ],
    },
    {
        "id": "r2",
        "word": "vis",
        "knownLetters": ["v", "i"],
        "letters": ["v", "i", "s"],
        "activities": [{"id": "letters", "caption": "Letters", "instruction": "none"}],
    },
]


