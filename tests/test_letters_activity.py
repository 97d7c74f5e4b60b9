"""Tests for the sound-out-the-letters exercise."""

from __future__ import annotations

import asyncio

from framework.activity import CursorInfo
from framework.records import Record, parse_records
from letters.letters_activity import LettersActivity, letter_cue
from tests.helpers import LineSink, make_context, until


def _record(letters: list[str]) -> Record:
    return parse_records([{"id": "r", "word": "maan", "letters": letters}])[0]


async def test_plays_each_letter_in_order_and_completes() -> None:
    record = _record(["m", "a", "n"])
    sink = LineSink()
    activity = LettersActivity(pause_sec=0)

    done = activity.start(make_context(record, sink=sink))
    signal = await asyncio.wait_for(done, timeout=2.0)

    assert signal.reason == "done"
    assert sink.sounds == ["letters/m", "letters/a", "letters/n"]
    assert activity.played == ["m", "a", "n"]
    assert sink.lines[0].text == "m a n"
    assert [sorted(line.highlighted) for line in sink.lines[1:]] == [[0], [1], [2]]


async def test_record_without_letters_finishes_immediately() -> None:
    record = Record(id="r", word="", activities=())
    context = make_context(_record(["a"]), sink=LineSink())
    activity = LettersActivity(pause_sec=0)

    done = activity.start(type(context)(record=record, activity=context.activity, activity_key="letters"))

    assert (await asyncio.wait_for(done, timeout=2.0)).reason == "done"
    assert activity.played == []


async def test_cursor_replays_letter_under_cursor() -> None:
    record = _record(["m", "a", "n"])
    sink = LineSink()
    activity = LettersActivity(pause_sec=0.05)

    done = activity.start(make_context(record, sink=sink))
    await until(lambda: len(sink.sounds) >= 1)
    activity.on_cursor(CursorInfo(index=2, letter="n"))
    await until(lambda: sink.sounds.count("letters/n") == 2)

    await asyncio.wait_for(done, timeout=2.0)
    assert activity.played == ["m", "a", "n"]


async def test_stop_interrupts_playback() -> None:
    record = _record(["m", "a", "n"])
    sink = LineSink()
    activity = LettersActivity(pause_sec=0.05)

    done = activity.start(make_context(record, sink=sink))
    await until(lambda: len(sink.sounds) >= 1)
    activity.stop("switch")
    await asyncio.sleep(0.15)

    assert (await done).reason == "switch"
    assert sink.sounds == ["letters/m"]


def test_letter_cue_is_normalized() -> None:
    assert letter_cue(" M ") == "letters/m"
