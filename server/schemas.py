"""Pydantic request schemas for the session API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SelectActivityRequest(BaseModel):
    """Request body for selecting a record and one of its activities."""

    record_index: int = Field(ge=0)
    activity_index: int = Field(default=0, ge=0)


class CancelRequest(BaseModel):
    """Request body for cancelling the current run."""

    reason: str = "stop"


class CursorRequest(BaseModel):
    """Request body for a raw cursor position reported by a device."""

    position: int
    source: str = "api"
