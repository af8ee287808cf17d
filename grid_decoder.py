# -*- coding: utf-8 -*-
########################
# grid_decoder.py
########################
# Purpose:
# - Decode one 4-column grid row into arrows.
# - Decode one measure of grid rows into positioned Divisions with subdivision color.
#
# Design notes:
# - Strict: unknown symbols, wrong row widths and row counts that do not divide
#   MEASURE_UNITS raise FormatError. Nothing is guessed.
# - Divisions leave here untimed (time=0.0). timeline_assembler.py timestamps them.
# - No I/O. Pure and deterministic.
#
########################
# Interfaces:
# Public functions:
# - decode_row(row: str) -> tuple[Arrow, ...]
# - classify_color(offset: int) -> Color
# - decode_measure(rows: Sequence[str], measure_start: int) -> list[Division]
#
# Inputs:
# - Grid rows from sm_store.split_measures().
#
# Outputs:
# - Unresolved Divisions for timeline_assembler.build_timeline().
#
########################

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from chart_models import (
    COLUMN_DIRECTIONS,
    MEASURE_UNITS,
    Arrow,
    ArrowKind,
    Color,
    Division,
    FormatError,
)


_SYMBOL_KINDS: Dict[str, ArrowKind] = {
    "0": ArrowKind.NONE,
    "1": ArrowKind.TAP,
    "2": ArrowKind.HOLD_START,
    "3": ArrowKind.HOLD_END,
    "M": ArrowKind.MINE,
}

# Coarsest subdivision first; a position is never reclassified as finer.
_COLOR_STEPS: Tuple[Tuple[int, Color], ...] = (
    (MEASURE_UNITS // 4, Color.RED),
    (MEASURE_UNITS // 8, Color.BLUE),
    (MEASURE_UNITS // 16, Color.YELLOW),
)


def decode_row(row: str) -> Tuple[Arrow, ...]:
    """Decode a row such as "0012" into its non-empty arrows, in column order."""
    if len(row) != len(COLUMN_DIRECTIONS):
        raise FormatError(f"Invalid row width. Expected {len(COLUMN_DIRECTIONS)}, got {len(row)}: {row!r}")

    arrows: List[Arrow] = []
    for column_index, symbol in enumerate(row):
        kind = _SYMBOL_KINDS.get(symbol)
        if kind is None:
            raise FormatError(f"Unsupported note symbol {symbol!r} in row {row!r}")
        if kind is ArrowKind.NONE:
            continue
        arrows.append(Arrow(direction=COLUMN_DIRECTIONS[column_index], kind=kind))
    return tuple(arrows)


def classify_color(offset: int) -> Color:
    position = int(offset) % MEASURE_UNITS
    for step, color in _COLOR_STEPS:
        if position % step == 0:
            return color
    return Color.GREEN


def decode_measure(rows: Sequence[str], measure_start: int) -> List[Division]:
    row_count = len(rows)
    if row_count <= 0 or MEASURE_UNITS % row_count != 0:
        raise FormatError(
            f"Measure at offset {measure_start} has {row_count} rows, which does not divide {MEASURE_UNITS}"
        )

    row_step = MEASURE_UNITS // row_count
    divisions: List[Division] = []
    for row_index, row in enumerate(rows):
        arrows = decode_row(row)
        if not arrows:
            continue
        position = row_index * row_step
        divisions.append(
            Division(
                arrows=arrows,
                color=classify_color(position),
                offset=int(measure_start) + position,
            )
        )
    return divisions


def _run_unit_tests() -> None:
    assert decode_row("0000") == ()
    assert [(arrow.direction.value, arrow.kind) for arrow in decode_row("0012")] == [
        ("up", ArrowKind.TAP),
        ("right", ArrowKind.HOLD_START),
    ]
    assert classify_color(0) is Color.RED
    assert classify_color(24) is Color.BLUE
    assert classify_color(12) is Color.YELLOW
    assert classify_color(16) is Color.GREEN

    divisions = decode_measure(["1000", "0000", "0100", "0000"], MEASURE_UNITS)
    assert [division.offset for division in divisions] == [192, 288]

    for bad_rows in (["0000"] * 5, ["0000"] * 7):
        try:
            decode_measure(bad_rows, 0)
        except FormatError:
            pass
        else:
            raise AssertionError("Expected FormatError for a row count that does not divide the measure")


if __name__ == "__main__":
    _run_unit_tests()
    print("grid_decoder.py: ok")
