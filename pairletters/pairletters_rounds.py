"""Round generation for the matching-letters exercise."""

from __future__ import annotations

import logging
import random
from typing import Iterable, Sequence

from framework.records import Record, unique_letters

from .pairletters_state import DEFAULT_LINE_LEN, FALLBACK_LETTER, MAX_LINE_LEN, clamp_int

logger = logging.getLogger(__name__)


def compute_pools(record: Record) -> tuple[list[str], list[str]]:
    """Return the record's (known, new) letter pools.

    New letters are the record's letters that are not already known.
    """
    known = sorted(record.known_letters)
    known_set = set(known)
    fresh = [letter for letter in record.letters if letter not in known_set]
    return known, fresh


def pick_target(rng: random.Random, known: Sequence[str], fresh: Sequence[str], record_letters: Sequence[str]) -> str:
    """Prefer a new letter, then a known one, then any record letter."""
    if fresh:
        return rng.choice(list(fresh))
    if known:
        return rng.choice(list(known))
    letters = unique_letters(list(record_letters))
    if letters:
        return rng.choice(list(letters))
    return FALLBACK_LETTER


def pick_distractor(
    rng: random.Random,
    target: str,
    record_letters: Sequence[str],
    known: Sequence[str],
    fresh: Sequence[str],
) -> str:
    """Pick the single distractor of a two-letter round, preferring the record's own letters."""
    record_pool = [letter for letter in unique_letters(list(record_letters)) if letter != target]
    if record_pool:
        return rng.choice(record_pool)
    global_pool = [letter for letter in unique_letters([*known, *fresh]) if letter != target]
    if global_pool:
        return rng.choice(global_pool)
    logger.warning("no distractor available %s", {"target": target})
    return target


def _distinct(letters: Iterable[str]) -> list[str]:
    return list(unique_letters(list(letters)))


def build_cells_multi_letter(
    rng: random.Random,
    target: str,
    pool: Sequence[str],
    requested_len: int,
) -> list[str]:
    """Place the target twice and fill the rest with distinct non-target letters.

    The line is shortened to ``distractors + 2`` when the pool cannot fill it
    without repeating a non-target letter.
    """
    others = [letter for letter in _distinct(pool) if letter != target]
    length = clamp_int(requested_len, 2, MAX_LINE_LEN, DEFAULT_LINE_LEN)
    max_possible = len(others) + 2
    if length > max_possible:
        logger.warning(
            "line length reduced, letter pool too small %s",
            {"requested": length, "max_possible": max_possible, "pool": "".join(_distinct(pool)), "target": target},
        )
        length = max_possible

    first, second = rng.sample(range(length), 2)
    shuffled = list(others)
    rng.shuffle(shuffled)
    fill = iter(shuffled)

    cells: list[str] = []
    for index in range(length):
        if index in (first, second):
            cells.append(target)
        else:
            cells.append(next(fill))
    return cells


def build_cells_two_letter(
    rng: random.Random,
    target: str,
    distractor: str,
    requested_len: int,
    target_count: int,
) -> list[str]:
    """Fill a line with exactly two distinct letters: ``target_count`` targets, the rest distractors.

    The line holds at least three cells so that two targets and one
    distractor always fit.
    """
    length = max(3, clamp_int(requested_len, 2, MAX_LINE_LEN, DEFAULT_LINE_LEN))
    count = max(2, min(length - 1, int(target_count)))

    cells = [distractor] * length
    for index in rng.sample(range(length), count):
        cells[index] = target
    return cells
