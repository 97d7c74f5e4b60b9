"""Framework exports for activities, the session controller and the line mapper."""

from .activity import Activity, ActivityContext, CompletionSignal, CursorInfo, ManagedActivity, StopReason
from .controller import Session, SessionController, instruction_cue
from .line import LineState, compute_word_at, render, resolve_index
from .records import ActivityDescriptor, Record, load_records, parse_records
from .registry import ActivityRegistry, canonical_activity_key, default_registry
from .services import AudioService, DisplayTransport, FanoutDisplay
from .settings import RunnerSettings

__all__ = [
    "Activity",
    "ActivityContext",
    "ActivityDescriptor",
    "ActivityRegistry",
    "AudioService",
    "CompletionSignal",
    "CursorInfo",
    "DisplayTransport",
    "FanoutDisplay",
    "LineState",
    "ManagedActivity",
    "Record",
    "RunnerSettings",
    "Session",
    "SessionController",
    "StopReason",
    "canonical_activity_key",
    "compute_word_at",
    "default_registry",
    "instruction_cue",
    "load_records",
    "parse_records",
    "render",
    "resolve_index",
]
