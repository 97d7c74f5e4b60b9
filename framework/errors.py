"""Structured exceptions used across the activity runner."""

from __future__ import annotations

from typing import Any


class RunnerError(Exception):
    """Base class for runner-level exceptions."""

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {"type": self.__class__.__name__, "message": str(self)}


class RecordStoreError(RunnerError):
    """Raised when the record document cannot be loaded or parsed."""


class UnknownRecordError(RunnerError):
    """Raised when a record or activity selection is out of range."""

    def __init__(self, record_index: int, activity_index: int | None = None):
        self.record_index = record_index
        self.activity_index = activity_index
        message = f"Unknown record index {record_index}"
        if activity_index is not None:
            message = f"Unknown activity index {activity_index} for record {record_index}"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["record_index"] = self.record_index
        if self.activity_index is not None:
            payload["activity_index"] = self.activity_index
        return payload


class TransportError(RunnerError):
    """Raised when a line cannot be delivered to the display."""

    def __init__(self, message: str, *, url: str | None = None, status: int | None = None):
        self.url = url
        self.status = status
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload.update({"url": self.url, "status": self.status})
        return payload


class AudioPlaybackError(RunnerError):
    """Raised when a named sound fails to load or play."""

    def __init__(self, name: str, reason: str | None = None):
        self.name = name
        self.reason = reason
        message = f"Cannot play {name!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["name"] = self.name
        if self.reason is not None:
            payload["reason"] = self.reason
        return payload
