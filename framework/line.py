"""Line/cell mapping between logical cell sequences and the rendered display line.

A logical line is a sequence of one-character cells. Rendering joins the cells
with a single separator so every cell occupies its own position on the tactile
display, and records where each cell starts. Resolution goes the other way: a
raw cursor position reported by the device is turned back into a logical cell
index, or ``None`` when the position does not address a cell.

Devices report positions either in character space (an offset into the
rendered text, separators included) or in cell space (a plain cell index).
``resolve_index`` prefers the character-space reading whenever the rendered
line is available and the position falls inside it, and only then falls back
to the cell-space reading.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Collection, Sequence

SEPARATOR = " "
OPEN_GLYPH = "é"


def render(cells: Sequence[str], highlighted: Collection[int] = ()) -> tuple[str, list[int]]:
    """Render cells into a display line and return it with each cell's start offset.

    Cells whose index is in ``highlighted`` are drawn with ``OPEN_GLYPH``. The
    substitution is visual only; callers keep comparing the underlying cells.
    """
    parts: list[str] = []
    cell_starts: list[int] = []
    position = 0
    for index, cell in enumerate(cells):
        if index > 0:
            parts.append(SEPARATOR)
            position += len(SEPARATOR)
        cell_starts.append(position)
        shown = OPEN_GLYPH if index in highlighted else (str(cell)[:1] or SEPARATOR)
        parts.append(shown)
        position += 1
    return "".join(parts), cell_starts


def _as_position(raw_position: Any) -> int | None:
    if raw_position is None or isinstance(raw_position, bool):
        return None
    try:
        numeric = float(raw_position)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(numeric):
        return None
    return math.floor(numeric)


def resolve_index(
    raw_position: Any,
    line: str | None,
    cell_starts: Sequence[int] | None,
    cell_count: int,
) -> int | None:
    """Resolve a raw device position to a logical cell index, or ``None``.

    Never raises: anything that cannot be resolved yields ``None``.
    """
    position = _as_position(raw_position)
    if position is None or cell_count <= 0:
        return None

    if line and cell_starts and 0 <= position < len(line):
        if line[position] == SEPARATOR:
            return None
        best = 0
        for index, start in enumerate(cell_starts):
            if start <= position:
                best = index
            else:
                break
        if 0 <= best < cell_count:
            return best

    if 0 <= position < cell_count:
        return position
    return None


def compute_word_at(text: str, position: int) -> str:
    """Return the whitespace-delimited word of ``text`` that contains ``position``."""
    if not text or position < 0 or position >= len(text):
        return ""
    start = position
    end = position
    while start > 0 and not text[start - 1].isspace():
        start -= 1
    while end < len(text) - 1 and not text[end + 1].isspace():
        end += 1
    return text[start : end + 1].strip()


@dataclass(frozen=True)
class LineState:
    """The single display line plus its cell-boundary table."""

    text: str = ""
    cells: tuple[str, ...] = ()
    cell_starts: tuple[int, ...] = ()
    highlighted: frozenset[int] = field(default_factory=frozenset)

    @classmethod
    def from_cells(cls, cells: Sequence[str], highlighted: Collection[int] = ()) -> "LineState":
        """Build the state for a separated cell line."""
        text, cell_starts = render(cells, highlighted)
        return cls(
            text=text,
            cells=tuple(cells),
            cell_starts=tuple(cell_starts),
            highlighted=frozenset(highlighted),
        )

    @classmethod
    def from_text(cls, text: str) -> "LineState":
        """Build the state for a plain text line where every character is a cell."""
        compact = " ".join(str(text or "").split())
        return cls(
            text=compact,
            cells=tuple(compact),
            cell_starts=tuple(range(len(compact))),
        )

    @property
    def cell_count(self) -> int:
        return len(self.cells)

    def resolve(self, raw_position: Any) -> int | None:
        """Resolve a raw device position against this line."""
        return resolve_index(raw_position, self.text, self.cell_starts, self.cell_count)

    def letter_at(self, index: int) -> str:
        """Return the logical character of a cell, never the substituted glyph."""
        if 0 <= index < self.cell_count:
            return self.cells[index]
        return ""

    def word_at(self, index: int) -> str:
        """Return the word of the rendered line that contains cell ``index``."""
        if not 0 <= index < len(self.cell_starts):
            return ""
        return compute_word_at(self.text, self.cell_starts[index])

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "cells": list(self.cells),
            "cell_starts": list(self.cell_starts),
            "highlighted": sorted(self.highlighted),
        }
