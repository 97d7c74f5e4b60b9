"""Server-side wiring of records, transports and the session controller."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from framework.bridge import BrailleBridgeDisplay
from framework.controller import SessionController
from framework.events import events_for_run
from framework.records import Record, load_records, record_summaries
from framework.registry import ActivityRegistry
from framework.serialize import to_serializable
from framework.services import DisplayTransport, FanoutDisplay
from framework.settings import RunnerSettings
from server.channel import DeviceChannel

logger = logging.getLogger(__name__)


@dataclass
class SessionRuntime:
    """One controller serving every connected device."""

    records: Sequence[Record]
    channel: DeviceChannel
    controller: SessionController

    @classmethod
    def create(
        cls,
        records: Sequence[Record],
        *,
        settings: RunnerSettings | None = None,
        registry: ActivityRegistry | None = None,
        channel: DeviceChannel | None = None,
        poll_interval_sec: float | None = None,
    ) -> "SessionRuntime":
        resolved = settings or RunnerSettings()
        device_channel = channel or DeviceChannel()
        display: DisplayTransport = device_channel
        if resolved.bridge_url:
            display = FanoutDisplay([device_channel, BrailleBridgeDisplay(resolved.bridge_url)])

        options: dict[str, Any] = {}
        if poll_interval_sec is not None:
            options["poll_interval_sec"] = poll_interval_sec
        controller = SessionController(
            records,
            audio=device_channel,
            display=display,
            registry=registry,
            auto_advance=resolved.auto_advance,
            display_cells=resolved.display_cells,
            cue_timeout_sec=resolved.cue_timeout_sec,
            **options,
        )
        return cls(records=records, channel=device_channel, controller=controller)

    @classmethod
    def from_settings(cls, settings: RunnerSettings) -> "SessionRuntime":
        records = load_records(settings.records_path)
        logger.info("records loaded %s", {"path": str(settings.records_path), "count": len(records)})
        return cls.create(records, settings=settings)

    def view(self) -> dict[str, Any]:
        payload = self.controller.snapshot()
        payload["devices"] = self.channel.client_count
        return payload

    def records_view(self) -> list[dict[str, Any]]:
        return record_summaries(self.records)

    def events(self, run_token: int | None = None) -> list[dict[str, Any]]:
        events = self.controller.events if run_token is None else events_for_run(self.controller.events, run_token)
        return [event.to_dict() for event in events]

    async def handle_device_message(self, message: Mapping[str, Any]) -> dict[str, Any] | None:
        """Apply one inbound device message; returns a reply for cursor events."""
        kind = str(message.get("type", "")).strip().lower()
        if kind == "cursor":
            info = self.controller.dispatch_cursor(message.get("index"), source=str(message.get("source", "device")))
            return {"type": "cursor", "resolved": to_serializable(info) if info is not None else None}
        if kind == "left":
            self.controller.left_action()
            return None
        if kind == "right":
            self.controller.right_action()
            return None
        if kind == "toggle":
            await self.controller.toggle_run()
            return None
        if kind in {"audio_done", "audio_error"}:
            self.channel.handle_audio_message(message)
            return None
        logger.debug("unknown device message %s", {"type": kind})
        return None
