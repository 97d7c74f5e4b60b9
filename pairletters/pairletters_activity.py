"""Matching-letters exercise: find the two cells that hold the same letter.

Each round shows a line of letter cells. The learner opens two cells with the
cursor; a match finishes the round, a mismatch is shown briefly and flipped
back. In two-letter mode the line holds only the target and one distractor,
so a pick only matches when both cells hold the target.

Feedback runs as background tasks. Each one captures the play token and the
selection epoch of the pick that scheduled it and gives up once either has
moved on, so feedback from an abandoned pick never touches a newer round.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any

from framework.activity import ActivityContext, CursorInfo, ManagedActivity, StopReason
from framework.line import LineState

from .pairletters_rounds import (
    build_cells_multi_letter,
    build_cells_two_letter,
    compute_pools,
    pick_distractor,
    pick_target,
)
from .pairletters_state import PairLettersConfig, Round, SelectionStage

logger = logging.getLogger(__name__)

FEEDBACK_SEC = 0.3
FLIPBACK_SEC = 0.65


@dataclass(frozen=True)
class FeedbackTexts:
    """Transient lines shown after a pick and at the end of the exercise."""

    match: str = "goed"
    mismatch: str = "fout"
    done: str = "klaar"


def normalize_letter(value: Any) -> str:
    """Return ``value`` as a single lower-case a-z letter, or ``""``."""
    text = str(value if value is not None else "").strip().lower()
    if len(text) != 1 or not "a" <= text <= "z":
        return ""
    return text


class PairLettersActivity(ManagedActivity):
    """Runs ``total_rounds`` find-the-pair rounds one after another."""

    activity_kind = "pairletters"

    def __init__(
        self,
        *,
        feedback_sec: float = FEEDBACK_SEC,
        flipback_sec: float = FLIPBACK_SEC,
        rng: random.Random | None = None,
        texts: FeedbackTexts | None = None,
    ) -> None:
        super().__init__()
        self.feedback_sec = feedback_sec
        self.flipback_sec = flipback_sec
        self.texts = texts or FeedbackTexts()
        self._rng = rng or random.Random()
        self.config = PairLettersConfig()
        self.round: Round | None = None
        self.rounds_completed = 0
        self._selection_epoch = 0
        self._round_waiter: asyncio.Future[None] | None = None
        self._known: list[str] = []
        self._fresh: list[str] = []
        self._record_letters: tuple[str, ...] = ()
        self._line = LineState()
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def selection_epoch(self) -> int:
        return self._selection_epoch

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------
    async def _run(self, context: ActivityContext, token: int) -> None:
        self._known, self._fresh = compute_pools(context.record)
        self._record_letters = context.record.letters
        self.config = PairLettersConfig.from_descriptor(context.activity)
        self.rounds_completed = 0
        logger.info(
            "pairletters run %s",
            {
                "record": context.record.id,
                "word": context.record.word,
                "known": self._known,
                "fresh": self._fresh,
                "config": self.config,
            },
        )

        for _ in range(self.config.total_rounds):
            if self.is_stale(token):
                return
            waiter = await self._next_round(token)
            await waiter
            if self.is_stale(token):
                return
            self.rounds_completed += 1

        await self._flash(self.texts.done, token, restore=False)
        if self.is_stale(token):
            return
        self.stop(StopReason.DONE)

    async def _next_round(self, token: int) -> asyncio.Future[None]:
        self._selection_epoch += 1
        target = pick_target(self._rng, self._known, self._fresh, self._record_letters)
        if self.config.two_letters_only:
            distractor = pick_distractor(self._rng, target, self._record_letters, self._known, self._fresh)
            cells = build_cells_two_letter(
                self._rng, target, distractor, self.config.line_len_cells, self.config.target_count
            )
        else:
            distractor = None
            cells = build_cells_multi_letter(
                self._rng, target, [*self._known, *self._fresh], self.config.line_len_cells
            )

        self.round = Round(cells=cells, target=target, distractor=distractor, epoch=self._selection_epoch)
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._round_waiter = waiter
        logger.debug(
            "pairletters round %s",
            {"round": self.rounds_completed + 1, "target": target, "distractor": distractor, "cells": "".join(cells)},
        )
        await self._redraw("new-round", token)
        return waiter

    def _resolve_round(self) -> None:
        waiter = self._round_waiter
        self._round_waiter = None
        if waiter is not None and not waiter.done():
            waiter.set_result(None)

    def _on_stop(self, reason: str) -> None:
        self._resolve_round()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def on_cursor(self, info: CursorInfo) -> None:
        current = self.round
        if not self.is_running() or current is None or current.input_locked:
            return
        index = info.index
        if not 0 <= index < len(current.cells):
            return
        if current.is_open(index):
            return
        letter = normalize_letter(current.cells[index])
        if not letter:
            return

        token = self._play_token
        if current.stage is SelectionStage.NONE:
            current.first_index = index
            current.first_letter = letter
            current.stage = SelectionStage.FIRST_PICKED
            self._spawn(self._redraw("pick-first", token))
            return

        if current.stage is SelectionStage.FIRST_PICKED:
            current.second_index = index
            current.second_letter = letter
            current.stage = SelectionStage.SECOND_PICKED
            current.input_locked = True
            current.attempts += 1
            self._spawn(self._evaluate(current, self._selection_epoch, token))

    def is_match(self, current: Round) -> bool:
        """Both picks hold the same letter; in two-letter mode it must also be the target."""
        if not current.first_letter or current.first_letter != current.second_letter:
            return False
        if self.config.two_letters_only:
            return current.first_letter == current.target
        return True

    async def _evaluate(self, current: Round, epoch: int, token: int) -> None:
        await self._redraw("pick-second", token)
        if self.is_match(current):
            await self._handle_match(current, epoch, token)
        else:
            await self._handle_mismatch(current, epoch, token)

    async def _handle_match(self, current: Round, epoch: int, token: int) -> None:
        await self._flash(self.texts.match, token)
        if self._superseded(epoch, token):
            return
        current.resolved = True
        self._resolve_round()

    async def _handle_mismatch(self, current: Round, epoch: int, token: int) -> None:
        await self._flash(self.texts.mismatch, token)
        await asyncio.sleep(self.flipback_sec)
        if self._superseded(epoch, token):
            return
        self._selection_epoch += 1
        current.reset_selection(self._selection_epoch)
        await self._redraw("flipback", token)

    def _superseded(self, epoch: int, token: int) -> bool:
        return self.is_stale(token) or epoch != self._selection_epoch

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------
    async def _redraw(self, reason: str, token: int) -> None:
        current = self.round
        if current is None or self.is_stale(token):
            return
        self._line = LineState.from_cells(current.cells, current.open_indices())
        logger.debug(
            "pairletters redraw %s",
            {"reason": reason, "line": self._line.text, "stage": current.stage.value, "target": current.target},
        )
        await self._push(self._line, token)

    async def _flash(self, message: str, token: int, *, restore: bool = True) -> None:
        saved = self._line
        await self._push(LineState.from_text(message), token)
        await asyncio.sleep(self.feedback_sec)
        if restore and not self.is_stale(token):
            await self._push(saved, token)

    async def _push(self, line: LineState, token: int) -> None:
        if self.context is None or self.is_stale(token):
            return
        await self.context.push_line(line)

    def _spawn(self, coroutine: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coroutine)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("pairletters feedback failed", exc_info=task.exception())
