"""WebSocket device channel: pushes lines and sound requests, receives device events."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

from fastapi import WebSocket

from framework.errors import AudioPlaybackError, TransportError
from framework.services import AudioService, DisplayTransport

logger = logging.getLogger(__name__)


class DeviceChannel(DisplayTransport, AudioService):
    """Fan-out to every connected device page (simulator or bridge client).

    Sounds are played by the connected page; ``play`` resolves when a client
    acknowledges with ``audio_done`` and returns at once when nobody listens.
    """

    def __init__(self) -> None:
        self._clients: set[WebSocket] = set()
        self._pending: dict[int, asyncio.Future[None]] = {}
        self._next_id = 0
        self.last_line = ""

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._clients.add(websocket)
        logger.info("device connected %s", {"clients": len(self._clients)})
        if self.last_line:
            await websocket.send_json({"type": "line", "text": self.last_line})

    def disconnect(self, websocket: WebSocket) -> None:
        self._clients.discard(websocket)
        logger.info("device disconnected %s", {"clients": len(self._clients)})
        if not self._clients:
            for future in self._pending.values():
                if not future.done():
                    future.set_result(None)

    async def send_line(self, text: str) -> None:
        self.last_line = text
        await self._broadcast({"type": "line", "text": text})

    async def play(self, name: str) -> None:
        if not self._clients:
            return
        self._next_id += 1
        request_id = self._next_id
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            await self._broadcast({"type": "play", "id": request_id, "name": name})
            await future
        finally:
            self._pending.pop(request_id, None)

    def handle_audio_message(self, message: Mapping[str, Any]) -> None:
        """Settle the sound request named by an ``audio_done``/``audio_error`` message."""
        try:
            request_id = int(message.get("id", -1))
        except (TypeError, ValueError):
            return
        future = self._pending.get(request_id)
        if future is None or future.done():
            return
        if message.get("type") == "audio_error":
            future.set_exception(AudioPlaybackError(str(message.get("name", request_id)), str(message.get("error") or "")))
        else:
            future.set_result(None)

    async def _broadcast(self, payload: dict[str, Any]) -> None:
        if not self._clients:
            return
        failures: list[str] = []
        for websocket in list(self._clients):
            try:
                await websocket.send_json(payload)
            except Exception as exc:
                failures.append(str(exc))
                self.disconnect(websocket)
        if failures and not self._clients:
            raise TransportError(f"No device accepted {payload.get('type')}: {failures[0]}")
