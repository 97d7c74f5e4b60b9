"""Session controller: runs at most one activity at a time and owns the display line.

Every run is identified by ``Session.run_token``. Starting, cancelling or
switching bumps the token; a continuation that captured an older token
returns without side effects. The controller is the only writer of the
display line: activities push lines through the callables bound into their
``ActivityContext``, which drop writes from superseded runs.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Sequence

from .activity import Activity, ActivityContext, CompletionSignal, CursorInfo, StopReason, reason_value
from .errors import UnknownRecordError
from .events import EventType, SessionEvent
from .line import LineState
from .records import ActivityDescriptor, Record
from .registry import ActivityRegistry, default_registry
from .services import AudioService, DisplayTransport
from .settings import DEFAULT_CUE_TIMEOUT_SEC, DEFAULT_DISPLAY_CELLS

logger = logging.getLogger(__name__)

STARTED_CUE = "ui/started.mp3"
STOPPED_CUE = "ui/stopped.mp3"
INSTRUCTION_NAMESPACE = "instructions"
POLL_INTERVAL_SEC = 0.05
MAX_EVENTS = 2000

_DISABLED_INSTRUCTIONS = {"", "-", "–", "none", "off", "placeholder", "instruction"}


def instruction_cue(instruction: Any) -> str | None:
    """Return the cue name for an instruction that names an audio asset, else ``None``."""
    text = str(instruction if instruction is not None else "").strip()
    if text.lower() in _DISABLED_INSTRUCTIONS:
        return None
    if not text.lower().endswith(".mp3"):
        return None
    filename = text.replace("\\", "/").split("/")[-1]
    if filename.lower() == ".mp3":
        return None
    return f"{INSTRUCTION_NAMESPACE}/{filename}"


@dataclass
class Session:
    """Mutable session state, owned and mutated only by ``SessionController``."""

    current_record_index: int = 0
    current_activity_index: int = 0
    run_token: int = 0
    running: bool = False
    active_module: Activity | None = None
    active_key: str | None = None
    completion: asyncio.Future[CompletionSignal] | None = None
    stopped_cue_played: bool = False
    last_signal: CompletionSignal | None = None


class SessionController:
    """Selects, starts and stops activities and relays device events to them."""

    def __init__(
        self,
        records: Sequence[Record],
        *,
        audio: AudioService,
        display: DisplayTransport,
        registry: ActivityRegistry | None = None,
        auto_advance: bool = False,
        display_cells: int = DEFAULT_DISPLAY_CELLS,
        cue_timeout_sec: float = DEFAULT_CUE_TIMEOUT_SEC,
        poll_interval_sec: float = POLL_INTERVAL_SEC,
    ) -> None:
        self.records = records
        self.audio = audio
        self.display = display
        self.registry = registry or default_registry()
        self.auto_advance = auto_advance
        self.display_cells = max(0, int(display_cells))
        self.cue_timeout_sec = cue_timeout_sec
        self.poll_interval_sec = poll_interval_sec
        self.session = Session()
        self.line = LineState.from_text(self._idle_text())
        self.events: list[SessionEvent] = []
        self._last_sent: str | None = None
        self._pending: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def current_record(self) -> Record | None:
        if not self.records:
            return None
        index = self.session.current_record_index
        if 0 <= index < len(self.records):
            return self.records[index]
        return None

    def current_activity(self) -> tuple[Record, ActivityDescriptor] | None:
        record = self.current_record()
        if record is None or not record.activities:
            return None
        index = min(self.session.current_activity_index, len(record.activities) - 1)
        return record, record.activities[index]

    async def select_activity(self, record_index: int, activity_index: int = 0) -> None:
        """Point the session at another record/activity without starting it.

        Any run is cancelled first, including one still playing its start cues.
        """
        if not 0 <= record_index < len(self.records):
            raise UnknownRecordError(record_index)
        activities = self.records[record_index].activities
        if activities and not 0 <= activity_index < len(activities):
            raise UnknownRecordError(record_index, activity_index)

        await self.cancel(StopReason.SWITCH)
        self.session.current_record_index = record_index
        self.session.current_activity_index = activity_index if activities else 0
        await self._update_line(LineState.from_text(self._idle_text()), reason="select-idle")

    async def next_record(self) -> None:
        await self._step_record(1)

    async def previous_record(self) -> None:
        await self._step_record(-1)

    async def _step_record(self, step: int) -> None:
        if not self.records:
            return
        await self.cancel(StopReason.STOP)
        self.session.current_record_index = (self.session.current_record_index + step) % len(self.records)
        self.session.current_activity_index = 0
        await self._update_line(LineState.from_text(self._idle_text()), reason="record-change-idle")

    def _advance_selection(self) -> None:
        record = self.current_record()
        if record is None:
            return
        next_activity = self.session.current_activity_index + 1
        if next_activity < len(record.activities):
            self.session.current_activity_index = next_activity
        else:
            self.session.current_record_index = (self.session.current_record_index + 1) % len(self.records)
            self.session.current_activity_index = 0
        self._record_event(
            EventType.ADVANCE,
            {
                "record_index": self.session.current_record_index,
                "activity_index": self.session.current_activity_index,
            },
        )

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------
    async def start_selected(self, *, auto_started: bool = False) -> None:
        """Run the selected activity until it completes or the run is superseded."""
        current = self.current_activity()
        if current is None:
            logger.info("nothing to start %s", {"record_index": self.session.current_record_index})
            return
        record, descriptor = current

        await self.cancel(StopReason.RESTART)
        token = self.session.run_token
        self.session.stopped_cue_played = False

        await self._play_cue(STARTED_CUE)
        cue = instruction_cue(descriptor.instruction)
        if cue is not None:
            await self._play_cue(cue)
        if token != self.session.run_token:
            logger.info("start superseded during cues %s", {"token": token})
            return

        key, module = self.registry.get(descriptor.id)
        if module is not None and key is not None:
            context = ActivityContext(
                record=record,
                activity=descriptor,
                activity_key=key,
                record_index=self.session.current_record_index,
                activity_index=self.session.current_activity_index,
                auto_started=auto_started,
                push_line=self._bind_push_line(token),
                play=self._bind_play(token),
            )
            self.session.active_module = module
            self.session.active_key = key
            self.session.completion = module.start(context)
        else:
            logger.warning("no activity module found %s", {"activity_id": descriptor.id})
            self.session.active_module = None
            self.session.active_key = None
            self.session.completion = None

        self.session.running = True
        self._record_event(
            EventType.RUN_START,
            {
                "record_id": record.id,
                "activity_id": descriptor.id,
                "activity_key": key,
                "auto_started": auto_started,
            },
        )

        await self._wait_for_stop_or_done(token)
        if token != self.session.run_token:
            return
        await self._finish_run(token)

    def launch(self, *, auto_started: bool = False) -> asyncio.Task[None]:
        """Schedule ``start_selected`` on the running loop and return its task."""
        return self._spawn(self.start_selected(auto_started=auto_started))

    async def cancel(self, reason: StopReason | str = StopReason.STOP) -> None:
        """Invalidate the current run and stop its module; safe at any time."""
        value = reason_value(reason)
        play_stopped = (
            value != StopReason.RESTART.value
            and self.session.running
            and not self.session.stopped_cue_played
        )
        if play_stopped:
            self.session.stopped_cue_played = True

        self.session.run_token += 1
        self.session.running = False
        self._stop_active(value)
        self._record_event(EventType.CANCEL, {"reason": value})
        await self._update_line(LineState.from_text(self._idle_text()), reason=f"cancel-{value}")

        if play_stopped:
            await self._play_cue(STOPPED_CUE)

    async def toggle_run(self) -> None:
        if self.session.running:
            await self.cancel(StopReason.STOP)
        else:
            self.launch()

    async def shutdown(self) -> None:
        """Cancel the current run and any background start tasks."""
        await self.cancel(StopReason.STOP)
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def _wait_for_stop_or_done(self, token: int) -> None:
        completion = self.session.completion
        while token == self.session.run_token and self.session.running:
            if completion is not None and completion.done():
                return
            if completion is None:
                await asyncio.sleep(self.poll_interval_sec)
            else:
                await asyncio.wait({completion}, timeout=self.poll_interval_sec)

    async def _finish_run(self, token: int) -> None:
        completion = self.session.completion
        if completion is not None and completion.done() and not completion.cancelled():
            self.session.last_signal = completion.result()

        if not self.session.stopped_cue_played:
            self.session.stopped_cue_played = True
            await self._play_cue(STOPPED_CUE)
        if token != self.session.run_token:
            return

        self.session.running = False
        self._stop_active(StopReason.FINALLY.value)
        self._record_event(
            EventType.RUN_END,
            {"signal": self.session.last_signal.to_dict() if self.session.last_signal else None},
        )
        await self._update_line(LineState.from_text(self._idle_text()), reason="activity-done-idle")

        if self.auto_advance and token == self.session.run_token:
            self._advance_selection()
            self.launch(auto_started=True)

    def _stop_active(self, reason: str) -> None:
        try:
            if self.session.active_module is not None:
                self.session.active_module.stop(reason)
        finally:
            self.session.active_module = None
            self.session.active_key = None
            self.session.completion = None

    def _spawn(self, coroutine: Any) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coroutine)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    # ------------------------------------------------------------------
    # Device events
    # ------------------------------------------------------------------
    def dispatch_cursor(self, raw_position: Any, source: str = "device") -> CursorInfo | None:
        """Resolve a raw cursor position and forward it to the running module."""
        index = self.line.resolve(raw_position)
        self._record_event(EventType.CURSOR, {"raw": raw_position, "index": index, "source": source})
        if index is None:
            logger.debug("cursor ignored %s", {"raw": raw_position, "source": source})
            return None

        info = CursorInfo(
            index=index,
            letter=self.line.letter_at(index),
            word=self.line.word_at(index),
            source=source,
        )
        logger.debug("cursor selection %s", {"index": index, "letter": info.letter, "word": info.word})
        module = self._running_module()
        if module is not None:
            module.on_cursor(info)
        return info

    def left_action(self) -> None:
        module = self._running_module()
        if module is not None:
            module.on_left_action()

    def right_action(self) -> asyncio.Task[None] | None:
        """Forward to the running module, or start the selected activity when idle."""
        module = self._running_module()
        if module is not None:
            module.on_right_action()
            return None
        if not self.session.running:
            return self.launch()
        return None

    def _running_module(self) -> Activity | None:
        module = self.session.active_module
        if self.session.running and module is not None and module.is_running():
            return module
        return None

    # ------------------------------------------------------------------
    # Line and audio
    # ------------------------------------------------------------------
    def _idle_text(self) -> str:
        record = self.current_record()
        return record.word if record is not None else ""

    def _bind_push_line(self, token: int):
        async def push_line(line: LineState) -> None:
            if token != self.session.run_token:
                return
            await self._update_line(line, reason=f"activity-{self.session.active_key}")

        return push_line

    def _bind_play(self, token: int):
        async def play(name: str) -> None:
            if token != self.session.run_token:
                return
            await self._play_cue(name)

        return play

    async def _update_line(self, line: LineState, *, reason: str) -> None:
        self.line = line
        text = line.text.ljust(self.display_cells) if self.display_cells else line.text
        if text == self._last_sent:
            return
        self._last_sent = text
        self._record_event(EventType.LINE, {"text": line.text, "reason": reason})
        logger.debug("line updated %s", {"len": len(line.text), "reason": reason})
        try:
            await self.display.send_line(text)
        except Exception as exc:
            logger.warning("display send failed %s", {"reason": reason, "error": str(exc)})

    async def _play_cue(self, name: str) -> None:
        try:
            await asyncio.wait_for(self.audio.play(name), timeout=self.cue_timeout_sec)
        except asyncio.TimeoutError:
            logger.warning("cue watchdog fired %s", {"name": name, "timeout": self.cue_timeout_sec})
        except Exception as exc:
            logger.warning("cue failed %s", {"name": name, "error": str(exc)})

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    def _record_event(self, event_type: EventType, payload: dict[str, Any]) -> None:
        self.events.append(
            SessionEvent.create(
                event_type,
                run_token=self.session.run_token,
                record_index=self.session.current_record_index,
                activity_index=self.session.current_activity_index,
                payload=payload,
            )
        )
        if len(self.events) > MAX_EVENTS:
            del self.events[: len(self.events) - MAX_EVENTS]

    def snapshot(self) -> dict[str, Any]:
        """Return a JSON-serializable view of the session."""
        record = self.current_record()
        current = self.current_activity()
        return {
            "record_index": self.session.current_record_index,
            "activity_index": self.session.current_activity_index,
            "record_id": record.id if record is not None else None,
            "word": record.word if record is not None else None,
            "activity_id": current[1].id if current is not None else None,
            "caption": current[1].caption if current is not None else None,
            "running": self.session.running,
            "run_token": self.session.run_token,
            "active_key": self.session.active_key,
            "line": self.line.text,
            "last_signal": self.session.last_signal.to_dict() if self.session.last_signal else None,
        }
