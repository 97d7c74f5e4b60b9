"""Unit tests for rendering cells and resolving device cursor positions."""

from __future__ import annotations

from framework.line import OPEN_GLYPH, LineState, compute_word_at, render, resolve_index


def test_render_separates_cells_and_records_starts() -> None:
    text, starts = render(["m", "a", "a", "n"])

    assert text == "m a a n"
    assert starts == [0, 2, 4, 6]


def test_every_cell_start_resolves_back_to_its_cell() -> None:
    line = LineState.from_cells(list("braille"))

    for index, start in enumerate(line.cell_starts):
        assert line.resolve(start) == index


def test_positions_on_separators_do_not_resolve() -> None:
    line = LineState.from_cells(["a", "b", "c"])

    assert line.resolve(1) is None
    assert line.resolve(3) is None


def test_highlighted_cells_use_open_glyph_but_keep_their_letter() -> None:
    line = LineState.from_cells(["k", "a", "t"], {1})

    assert line.text == f"k {OPEN_GLYPH} t"
    assert line.resolve(2) == 1
    assert line.letter_at(1) == "a"


def test_cell_space_fallback_when_no_rendered_line() -> None:
    assert resolve_index(2, None, None, 3) == 2
    assert resolve_index(2, "", [], 3) == 2
    assert resolve_index(3, None, None, 3) is None


def test_out_of_range_char_position_falls_back_to_cell_reading() -> None:
    # "a b" has length 3; position 3 is past the text and past the cells.
    assert resolve_index(3, "a b", [0, 2], 2) is None
    assert resolve_index(1, "a b", [0, 2], 2) is None


def test_unusable_positions_resolve_to_none() -> None:
    line = LineState.from_cells(["a", "b", "c"])

    assert line.resolve(None) is None
    assert line.resolve("left") is None
    assert line.resolve(True) is None
    assert line.resolve(float("nan")) is None
    assert line.resolve(-1) is None
    assert LineState().resolve(0) is None


def test_fractional_positions_are_floored() -> None:
    line = LineState.from_cells(["a", "b", "c"])

    assert line.resolve(2.7) == 1
    assert line.resolve("4") == 2


def test_word_at_returns_word_under_cell() -> None:
    line = LineState.from_text("maan  vis")

    assert line.text == "maan vis"
    assert line.word_at(1) == "maan"
    assert line.word_at(6) == "vis"
    assert line.resolve(4) is None
    assert compute_word_at("maan vis", 99) == ""
