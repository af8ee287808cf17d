from __future__ import annotations

import pytest

from chart_models import MEASURE_UNITS, ArrowKind, Color, Direction, FormatError
import grid_decoder


def test_decode_row_of_empty_symbols_yields_no_arrows() -> None:
    assert grid_decoder.decode_row("0000") == ()


def test_decode_row_keeps_column_order_and_kinds() -> None:
    arrows = grid_decoder.decode_row("0012")

    assert [(arrow.direction, arrow.kind) for arrow in arrows] == [
        (Direction.UP, ArrowKind.TAP),
        (Direction.RIGHT, ArrowKind.HOLD_START),
    ]
    assert all(arrow.release_offset is None for arrow in arrows)


def test_decode_row_reads_hold_ends_and_mines() -> None:
    arrows = grid_decoder.decode_row("3M00")

    assert [(arrow.direction, arrow.kind) for arrow in arrows] == [
        (Direction.LEFT, ArrowKind.HOLD_END),
        (Direction.DOWN, ArrowKind.MINE),
    ]


@pytest.mark.parametrize("row", ["0X00", "0040", "000", "00000", ""])
def test_decode_row_rejects_bad_rows(row: str) -> None:
    with pytest.raises(FormatError):
        grid_decoder.decode_row(row)


@pytest.mark.parametrize("row_count", [5, 7, 10, 100])
def test_decode_measure_rejects_row_counts_that_do_not_divide_the_measure(row_count: int) -> None:
    with pytest.raises(FormatError):
        grid_decoder.decode_measure(["0000"] * row_count, 0)


@pytest.mark.parametrize("row_count", [1, 2, 4, 8, 12, 16, 24, 32, 48, 64, 192])
def test_decode_measure_accepts_common_subdivisions(row_count: int) -> None:
    rows = ["1000"] + ["0000"] * (row_count - 1)

    divisions = grid_decoder.decode_measure(rows, 0)

    assert len(divisions) == 1
    assert divisions[0].offset == 0


def test_decode_measure_positions_rows_from_measure_start() -> None:
    rows = ["1000", "0100", "0000", "0000", "0010", "0000", "0000", "0001"]

    divisions = grid_decoder.decode_measure(rows, MEASURE_UNITS)

    assert [division.offset for division in divisions] == [192, 216, 288, 360]
    assert [division.color for division in divisions] == [Color.RED, Color.BLUE, Color.RED, Color.BLUE]
    assert all(division.time == 0.0 for division in divisions)


def test_classify_color_is_total_over_a_measure() -> None:
    for offset in range(MEASURE_UNITS):
        color = grid_decoder.classify_color(offset)
        assert color in Color
        assert grid_decoder.classify_color(offset) is color


@pytest.mark.parametrize(
    "offset, expected",
    [
        (0, Color.RED),
        (48, Color.RED),
        (144, Color.RED),
        (24, Color.BLUE),
        (120, Color.BLUE),
        (12, Color.YELLOW),
        (36, Color.YELLOW),
        (4, Color.GREEN),
        (16, Color.GREEN),
        (6, Color.GREEN),
        (MEASURE_UNITS + 24, Color.BLUE),
    ],
)
def test_classify_color_prefers_coarsest_subdivision(offset: int, expected: Color) -> None:
    assert grid_decoder.classify_color(offset) is expected
