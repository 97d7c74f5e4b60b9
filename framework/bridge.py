"""Display transport that writes lines to a local BrailleBridge over HTTP."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from .errors import TransportError
from .http_utils import join_url, post_json
from .services import DisplayTransport

logger = logging.getLogger(__name__)

DEFAULT_BRIDGE_URL = "http://localhost:5000"
WRITE_ENDPOINT = "/braille"
CLEAR_ENDPOINT = "/clear"

# Bridges disagree on the body of a write; the first accepted shape wins.
_WRITE_PAYLOAD_KEYS = ("text", "value", "message")


class BrailleBridgeDisplay(DisplayTransport):
    """POSTs each line to ``<base_url>/braille`` and empty lines to ``/clear``."""

    def __init__(self, base_url: str = DEFAULT_BRIDGE_URL, *, timeout_sec: float = 5.0):
        self.base_url = base_url.strip() or DEFAULT_BRIDGE_URL
        self.timeout_sec = timeout_sec

    async def send_line(self, text: str) -> None:
        if not text.strip():
            await self._post(join_url(self.base_url, CLEAR_ENDPOINT), {})
            return

        url = join_url(self.base_url, WRITE_ENDPOINT)
        last_error: TransportError | None = None
        for key in _WRITE_PAYLOAD_KEYS:
            try:
                await self._post(url, {key: text})
                return
            except TransportError as exc:
                # Only a rejected body is worth retrying with another shape.
                if exc.status is None or exc.status >= 500:
                    raise
                last_error = exc
        if last_error is not None:
            raise last_error

    async def _post(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        logger.debug("bridge post %s", {"url": url, "keys": sorted(payload)})
        return await asyncio.to_thread(post_json, url, payload, self.timeout_sec)
