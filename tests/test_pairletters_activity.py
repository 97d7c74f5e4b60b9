"""Behavioral tests for the matching-letters exercise."""

from __future__ import annotations

import asyncio
import random

from framework.activity import CursorInfo, StopReason
from framework.line import LineState
from framework.records import parse_records
from pairletters.pairletters_activity import PairLettersActivity
from pairletters.pairletters_state import SelectionStage
from tests.helpers import LineSink, make_context, until


def _records(options: dict) -> list:
    activity = {"id": "pairletters", "caption": "Paren", **options}
    return parse_records(
        [{"id": "r1", "word": "maan", "knownLetters": ["m", "a", "s"], "letters": ["m", "a", "n"], "activities": [activity]}]
    )


def _activity() -> PairLettersActivity:
    return PairLettersActivity(feedback_sec=0.01, flipback_sec=0.01, rng=random.Random(7))


def _indices(activity: PairLettersActivity, letter: str) -> list[int]:
    assert activity.round is not None
    return [index for index, cell in enumerate(activity.round.cells) if cell == letter]


def _pick(activity: PairLettersActivity, index: int) -> None:
    assert activity.round is not None
    activity.on_cursor(CursorInfo(index=index, letter=activity.round.cells[index]))


async def _solve_round(activity: PairLettersActivity) -> None:
    current = activity.round
    assert current is not None
    first, second = _indices(activity, current.target)[:2]
    _pick(activity, first)
    _pick(activity, second)
    await until(lambda: activity.round is not current or not activity.is_running())


async def test_runs_configured_number_of_rounds_then_completes() -> None:
    records = _records({"nrof": 3, "lineLen": 5})
    sink = LineSink()
    activity = _activity()

    done = activity.start(make_context(records[0], sink=sink))
    await until(lambda: activity.round is not None)
    for _ in range(3):
        await _solve_round(activity)

    signal = await asyncio.wait_for(done, timeout=2.0)
    assert signal.ok is True
    assert signal.reason == StopReason.DONE.value
    assert activity.rounds_completed == 3
    assert not activity.is_running()
    texts = [line.text for line in sink.lines]
    assert texts.count("goed") == 3
    assert "klaar" in texts
    assert texts[-1] == "klaar"


async def test_rounds_use_target_from_new_letters() -> None:
    records = _records({"nrof": 1, "lineLen": 18})
    activity = _activity()

    done = activity.start(make_context(records[0]))
    await until(lambda: activity.round is not None)

    assert activity.round is not None
    assert activity.round.target == "n"
    assert len(activity.round.cells) == 5
    activity.stop()
    assert (await done).reason == "stop"


async def test_mismatch_flips_back_and_unlocks_input() -> None:
    records = _records({"nrof": 1, "lineLen": 5})
    sink = LineSink()
    activity = _activity()
    activity.start(make_context(records[0], sink=sink))
    await until(lambda: activity.round is not None)
    current = activity.round
    assert current is not None

    target_index = _indices(activity, current.target)[0]
    other_index = next(i for i, cell in enumerate(current.cells) if cell != current.target)
    _pick(activity, target_index)
    _pick(activity, other_index)
    assert current.input_locked is True

    await until(lambda: current.stage is SelectionStage.NONE)
    assert current.input_locked is False
    assert current.attempts == 1
    assert activity.round is current
    assert "fout" in [line.text for line in sink.lines]
    assert sink.last == LineState.from_cells(current.cells)
    activity.stop()


async def test_first_pick_is_shown_open_on_the_line() -> None:
    records = _records({"nrof": 1, "lineLen": 5})
    sink = LineSink()
    activity = _activity()
    activity.start(make_context(records[0], sink=sink))
    await until(lambda: activity.round is not None)

    _pick(activity, 0)
    await until(lambda: 0 in sink.last.highlighted)

    assert sink.last.letter_at(0) == activity.round.cells[0]
    activity.stop()


async def test_open_cells_and_out_of_range_picks_are_ignored() -> None:
    records = _records({"nrof": 1, "lineLen": 5})
    activity = _activity()
    activity.start(make_context(records[0]))
    await until(lambda: activity.round is not None)
    current = activity.round
    assert current is not None

    _pick(activity, 1)
    activity.on_cursor(CursorInfo(index=1, letter=current.cells[1]))
    activity.on_cursor(CursorInfo(index=42, letter="x"))

    assert current.stage is SelectionStage.FIRST_PICKED
    assert current.second_index is None
    activity.stop()


async def test_two_letter_mode_only_matches_the_target() -> None:
    records = _records({"nrof": 1, "lineLen": 6, "twoletters": True, "targetCount": 2})
    activity = _activity()
    done = activity.start(make_context(records[0]))
    await until(lambda: activity.round is not None)
    current = activity.round
    assert current is not None
    assert current.distractor is not None
    assert set(current.cells) == {current.target, current.distractor}
    assert current.cells.count(current.target) == 2

    first, second = _indices(activity, current.distractor)[:2]
    _pick(activity, first)
    _pick(activity, second)
    assert activity.is_match(current) is False
    await until(lambda: current.stage is SelectionStage.NONE)
    assert activity.rounds_completed == 0

    await _solve_round(activity)
    signal = await asyncio.wait_for(done, timeout=2.0)
    assert signal.reason == "done"
    assert activity.rounds_completed == 1


async def test_feedback_from_stopped_run_is_discarded() -> None:
    records = _records({"nrof": 2, "lineLen": 5})
    sink = LineSink()
    activity = _activity()
    done = activity.start(make_context(records[0], sink=sink))
    await until(lambda: activity.round is not None)
    current = activity.round
    assert current is not None

    target_index = _indices(activity, current.target)[0]
    other_index = next(i for i, cell in enumerate(current.cells) if cell != current.target)
    _pick(activity, target_index)
    _pick(activity, other_index)
    activity.stop(StopReason.STOP)
    pushed = len(sink.lines)

    await asyncio.sleep(0.08)

    assert len(sink.lines) == pushed
    assert current.stage is SelectionStage.SECOND_PICKED
    assert current.input_locked is True
    assert (await done).reason == "stop"


async def test_restart_resolves_previous_run_and_starts_fresh() -> None:
    records = _records({"nrof": 2, "lineLen": 5})
    activity = _activity()
    first_done = activity.start(make_context(records[0]))
    await until(lambda: activity.round is not None)
    first_round = activity.round

    second_done = activity.start(make_context(records[0]))
    await until(lambda: activity.round is not first_round)

    assert (await first_done).reason == "restart"
    assert activity.is_running()
    assert activity.rounds_completed == 0
    activity.stop()
    assert (await second_done).reason == "stop"


async def test_stop_is_idempotent() -> None:
    records = _records({"nrof": 1})
    activity = _activity()
    done = activity.start(make_context(records[0]))
    await until(lambda: activity.round is not None)

    activity.stop()
    activity.stop()
    activity.on_cursor(CursorInfo(index=0, letter="a"))

    assert (await done).reason == "stop"
    assert not activity.is_running()
