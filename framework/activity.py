"""Activity contract implemented by every exercise, plus a token-managed base class."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .line import LineState
from .records import ActivityDescriptor, Record

logger = logging.getLogger(__name__)


class StopReason(str, Enum):
    """Standardized reasons passed to ``Activity.stop``."""

    DONE = "done"
    STOP = "stop"
    RESTART = "restart"
    SWITCH = "switch"
    FINALLY = "finally"
    ERROR = "error"


def reason_value(reason: StopReason | str | None) -> str:
    if isinstance(reason, StopReason):
        return reason.value
    return str(reason or StopReason.STOP.value)


@dataclass(frozen=True)
class CompletionSignal:
    """Payload resolving an activity's completion future."""

    ok: bool
    reason: str
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"ok": self.ok, "reason": self.reason, "error": self.error}


@dataclass(frozen=True)
class CursorInfo:
    """A cursor selection already resolved to a logical cell index."""

    index: int
    letter: str
    word: str = ""
    source: str = "device"


async def _no_line(line: LineState) -> None:
    return None


async def _no_sound(name: str) -> None:
    return None


@dataclass(frozen=True)
class ActivityContext:
    """Everything an activity receives when it is started.

    ``push_line`` and ``play`` are bound by the session controller to the run
    that created the context; once that run is superseded they do nothing.
    """

    record: Record
    activity: ActivityDescriptor
    activity_key: str
    record_index: int = 0
    activity_index: int = 0
    auto_started: bool = False
    push_line: Callable[[LineState], Awaitable[None]] = field(default=_no_line, repr=False)
    play: Callable[[str], Awaitable[None]] = field(default=_no_sound, repr=False)


class Activity(ABC):
    """Interface every exercise implementation must satisfy."""

    activity_kind: str = "activity"

    @abstractmethod
    def start(self, context: ActivityContext) -> asyncio.Future[CompletionSignal]:
        """Begin the exercise, restarting it if it already runs.

        The returned future resolves when the exercise completes on its own or
        is stopped.
        """

    @abstractmethod
    def stop(self, reason: StopReason | str = StopReason.STOP) -> None:
        """Stop the exercise; a no-op when it is not running."""

    @abstractmethod
    def is_running(self) -> bool:
        """Return whether the exercise is running."""

    def on_cursor(self, info: CursorInfo) -> None:
        """Optional handler for a resolved cursor selection."""

    def on_left_action(self) -> None:
        """Optional handler for the left thumb key."""

    def on_right_action(self) -> None:
        """Optional handler for the right thumb key."""


class ManagedActivity(Activity):
    """Activity base that owns the completion future and the play token.

    Subclasses implement ``_run`` as a coroutine. Every continuation inside it
    captures the token passed in and returns early once ``is_stale(token)``.
    """

    def __init__(self) -> None:
        self._running = False
        self._play_token = 0
        self._done: asyncio.Future[CompletionSignal] | None = None
        self._task: asyncio.Task[None] | None = None
        self.context: ActivityContext | None = None

    @abstractmethod
    async def _run(self, context: ActivityContext, token: int) -> None:
        """Drive the exercise until it finishes or the token goes stale."""

    def _on_stop(self, reason: str) -> None:
        """Hook for releasing per-run waiters when the activity stops."""

    def start(self, context: ActivityContext) -> asyncio.Future[CompletionSignal]:
        self.stop(StopReason.RESTART)
        loop = asyncio.get_running_loop()
        done: asyncio.Future[CompletionSignal] = loop.create_future()
        self._done = done
        self._running = True
        self._play_token += 1
        token = self._play_token
        self.context = context
        logger.info(
            "%s start %s",
            self.activity_kind,
            {"record": context.record.id, "activity": context.activity.id, "token": token},
        )
        self._task = loop.create_task(self._run(context, token))
        self._task.add_done_callback(lambda task: self._on_run_finished(task, done, token))
        return done

    def stop(self, reason: StopReason | str = StopReason.STOP) -> None:
        if not self._running and self._done is None:
            return
        value = reason_value(reason)
        self._running = False
        self._play_token += 1
        self._on_stop(value)
        logger.info("%s stop %s", self.activity_kind, {"reason": value})
        self._resolve_done(CompletionSignal(ok=True, reason=value))

    def is_running(self) -> bool:
        return self._running

    def is_stale(self, token: int) -> bool:
        """Return whether a continuation that captured ``token`` must be discarded."""
        return not self._running or token != self._play_token

    def _resolve_done(self, signal: CompletionSignal) -> None:
        done = self._done
        self._done = None
        if done is not None and not done.done():
            done.set_result(signal)

    def _on_run_finished(self, task: asyncio.Task[None], done: asyncio.Future[CompletionSignal], token: int) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        logger.error("%s run failed", self.activity_kind, exc_info=exc)
        if token == self._play_token:
            self._running = False
            self._play_token += 1
            self._on_stop(StopReason.ERROR.value)
            self._done = None
        if not done.done():
            done.set_result(CompletionSignal(ok=False, reason=StopReason.ERROR.value, error=str(exc)))
