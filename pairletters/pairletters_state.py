"""Configuration and round state for the matching-letters exercise."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from framework.records import ActivityDescriptor

DEFAULT_ROUNDS = 5
DEFAULT_LINE_LEN = 18
DEFAULT_TARGET_COUNT = 2
MAX_ROUNDS = 200
MAX_LINE_LEN = 40
MAX_TARGET_COUNT = 40
FALLBACK_LETTER = "a"


class SelectionStage(str, Enum):
    """Progress of the pick-two-cells selection within a round."""

    NONE = "none"
    FIRST_PICKED = "first-picked"
    SECOND_PICKED = "second-picked"


def clamp_int(value: Any, minimum: int, maximum: int, fallback: int) -> int:
    """Floor ``value`` and clamp it to ``[minimum, maximum]``; unusable input yields ``fallback``."""
    if value is None or isinstance(value, bool):
        return fallback
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(numeric):
        return fallback
    return max(minimum, min(maximum, math.floor(numeric)))


def read_bool(value: Any, fallback: bool) -> bool:
    if value is True or value is False:
        return value
    text = str(value).strip().lower()
    if text == "true":
        return True
    if text == "false":
        return False
    return fallback


@dataclass(frozen=True)
class PairLettersConfig:
    """Exercise settings read from an activity descriptor, clamped to safe bounds."""

    total_rounds: int = DEFAULT_ROUNDS
    line_len_cells: int = DEFAULT_LINE_LEN
    two_letters_only: bool = False
    target_count: int = DEFAULT_TARGET_COUNT

    @classmethod
    def from_descriptor(cls, descriptor: ActivityDescriptor) -> "PairLettersConfig":
        _missing = object()
        raw_two = descriptor.get("twoletters", "twoLetters", "twoLettersOnly", default=_missing)
        return cls(
            total_rounds=clamp_int(descriptor.get("nrof", "nrOf", "nRounds"), 1, MAX_ROUNDS, DEFAULT_ROUNDS),
            line_len_cells=clamp_int(
                descriptor.get("lineLen", "lineLength", "len"), 2, MAX_LINE_LEN, DEFAULT_LINE_LEN
            ),
            two_letters_only=False if raw_two is _missing else read_bool(raw_two, False),
            target_count=clamp_int(
                descriptor.get("targetCount", "targetcount", "targets"),
                2,
                MAX_TARGET_COUNT,
                DEFAULT_TARGET_COUNT,
            ),
        )


@dataclass
class Round:
    """One generated line and the selection made on it so far."""

    cells: list[str]
    target: str
    epoch: int
    distractor: str | None = None
    stage: SelectionStage = SelectionStage.NONE
    first_index: int | None = None
    first_letter: str = ""
    second_index: int | None = None
    second_letter: str = ""
    input_locked: bool = False
    resolved: bool = False
    attempts: int = field(default=0)

    def open_indices(self) -> frozenset[int]:
        return frozenset(index for index in (self.first_index, self.second_index) if index is not None)

    def is_open(self, index: int) -> bool:
        return index == self.first_index or index == self.second_index

    def reset_selection(self, epoch: int) -> None:
        self.stage = SelectionStage.NONE
        self.first_index = None
        self.first_letter = ""
        self.second_index = None
        self.second_letter = ""
        self.input_locked = False
        self.epoch = epoch
