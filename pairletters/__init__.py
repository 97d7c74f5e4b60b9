"""Matching-letters exercise package exports."""

from .pairletters_activity import FeedbackTexts, PairLettersActivity, normalize_letter
from .pairletters_rounds import (
    build_cells_multi_letter,
    build_cells_two_letter,
    compute_pools,
    pick_distractor,
    pick_target,
)
from .pairletters_state import PairLettersConfig, Round, SelectionStage, clamp_int

__all__ = [
    "FeedbackTexts",
    "PairLettersActivity",
    "PairLettersConfig",
    "Round",
    "SelectionStage",
    "build_cells_multi_letter",
    "build_cells_two_letter",
    "clamp_int",
    "compute_pools",
    "normalize_letter",
    "pick_distractor",
    "pick_target",
]
