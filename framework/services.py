"""Interfaces of the external collaborators the session controller talks to."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Sequence

logger = logging.getLogger(__name__)


class AudioService(ABC):
    """Plays named sounds and resolves when playback ends."""

    @abstractmethod
    async def play(self, name: str) -> None:
        """Play ``name``; raise ``AudioPlaybackError`` when it cannot be played."""


class DisplayTransport(ABC):
    """Sends a single line of text to the tactile display."""

    @abstractmethod
    async def send_line(self, text: str) -> None:
        """Deliver ``text``; raise ``TransportError`` when delivery fails."""


class FanoutDisplay(DisplayTransport):
    """Sends every line to several transports; the first failure is re-raised after all ran."""

    def __init__(self, transports: Sequence[DisplayTransport]):
        self.transports = list(transports)

    async def send_line(self, text: str) -> None:
        first_error: Exception | None = None
        for transport in self.transports:
            try:
                await transport.send_line(text)
            except Exception as exc:
                logger.debug("display transport failed %s", {"transport": type(transport).__name__, "error": str(exc)})
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error
