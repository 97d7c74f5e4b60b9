"""Letters exercise: show and sound out each letter of the record in turn."""

from __future__ import annotations

import asyncio
import logging

from framework.activity import ActivityContext, CursorInfo, ManagedActivity, StopReason
from framework.line import LineState

logger = logging.getLogger(__name__)

LETTER_NAMESPACE = "letters"
PAUSE_SEC = 0.2


def letter_cue(letter: str) -> str:
    return f"{LETTER_NAMESPACE}/{letter.strip().lower()}"


class LettersActivity(ManagedActivity):
    """Plays the record's letters in order; a cursor press on a letter replays it."""

    activity_kind = "letters"

    def __init__(self, *, pause_sec: float = PAUSE_SEC) -> None:
        super().__init__()
        self.pause_sec = pause_sec
        self.played: list[str] = []
        self._shown: tuple[str, ...] = ()
        self._replays: set[asyncio.Task[None]] = set()

    async def _run(self, context: ActivityContext, token: int) -> None:
        letters = context.record.letters
        self.played = []
        self._shown = tuple(letters)
        if not letters:
            logger.info("letters: nothing to play %s", {"record": context.record.id})
            self.stop(StopReason.DONE)
            return

        await context.push_line(LineState.from_cells(letters))
        for index, letter in enumerate(letters):
            if self.is_stale(token):
                return
            await context.push_line(LineState.from_cells(letters, {index}))
            if self.is_stale(token):
                return
            await context.play(letter_cue(letter))
            self.played.append(letter)
            await asyncio.sleep(self.pause_sec)

        if self.is_stale(token):
            return
        self.stop(StopReason.DONE)

    def on_cursor(self, info: CursorInfo) -> None:
        if not self.is_running() or self.context is None:
            return
        if not 0 <= info.index < len(self._shown):
            return
        letter = self._shown[info.index]
        logger.debug("letters replay %s", {"index": info.index, "letter": letter})
        task = asyncio.get_running_loop().create_task(self.context.play(letter_cue(letter)))
        self._replays.add(task)
        task.add_done_callback(self._replays.discard)
