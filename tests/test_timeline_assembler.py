from __future__ import annotations

import logging

import pytest

from chart_models import (
    ArrowKind,
    Direction,
    FormatError,
    Pause,
    TempoChange,
    TimingPreconditionError,
    UnresolvedHoldError,
)
import groove_radar
import timeline_assembler


TEMPO_120 = [TempoChange(offset=0, bpm=120.0)]


def test_single_tap_end_to_end() -> None:
    timeline = timeline_assembler.build_timeline([["1000", "0000", "0000", "0000"]], TEMPO_120)

    assert len(timeline.divisions) == 1
    division = timeline.divisions[0]
    assert division.offset == 0
    assert division.time == 0.0
    assert groove_radar.music_length(timeline) == pytest.approx(1.6)
    assert groove_radar.calc_stream(timeline) == int((1 / 1.6 * 60.0) / 3.0)


def test_hold_is_folded_into_its_start() -> None:
    timeline = timeline_assembler.build_timeline([["2000", "0000", "3000", "0000"]], TEMPO_120)

    assert len(timeline.divisions) == 1
    (arrow,) = timeline.divisions[0].arrows
    assert arrow.kind is ArrowKind.HOLD_START
    assert arrow.direction is Direction.LEFT
    assert arrow.release_offset == 96
    assert arrow.release_time == pytest.approx(1.0)


def test_hold_end_in_another_lane_does_not_terminate_the_hold() -> None:
    with pytest.raises(UnresolvedHoldError):
        timeline_assembler.build_timeline([["2000", "0000", "0300", "0000"]], TEMPO_120)


def test_hold_resolves_across_measures() -> None:
    measures = [["0200"], ["0000", "0300", "0000", "0000"]]

    timeline = timeline_assembler.build_timeline(measures, TEMPO_120)

    (arrow,) = timeline.divisions[0].arrows
    assert arrow.release_offset == 240


def test_hold_end_sharing_a_row_with_a_tap_keeps_the_tap() -> None:
    timeline = timeline_assembler.build_timeline([["2000", "0000", "3100", "0000"]], TEMPO_120)

    assert [division.offset for division in timeline.divisions] == [0, 96]
    assert [(arrow.direction, arrow.kind) for arrow in timeline.divisions[1].arrows] == [
        (Direction.DOWN, ArrowKind.TAP)
    ]


def test_hold_pairs_with_first_matching_end() -> None:
    measures = [["2000", "3000", "2000", "3000"]]

    timeline = timeline_assembler.build_timeline(measures, TEMPO_120)

    assert [division.arrows[0].release_offset for division in timeline.divisions] == [48, 144]


def test_orphan_hold_end_is_dropped_with_a_warning(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="timeline_assembler"):
        timeline = timeline_assembler.build_timeline([["1000", "3000", "0000", "0000"]], TEMPO_120)

    assert [division.offset for division in timeline.divisions] == [0]
    assert "no matching hold start" in caplog.text


def test_no_hold_end_arrows_remain() -> None:
    timeline = timeline_assembler.build_timeline([["2200", "0000", "3000", "0310"]], TEMPO_120)

    assert [division.offset for division in timeline.divisions] == [0, 144]
    kinds = [arrow.kind for division in timeline.divisions for arrow in division.arrows]
    assert ArrowKind.HOLD_END not in kinds
    for division in timeline.divisions:
        for arrow in division.arrows:
            assert (arrow.release_offset is not None) == (arrow.kind is ArrowKind.HOLD_START)


def test_pauses_delay_later_divisions() -> None:
    tempo_changes = [TempoChange(offset=0, bpm=60.0)]
    pauses = [Pause(offset=0, seconds=2.0)]

    timeline = timeline_assembler.build_timeline([["1000", "0100", "0000", "0000"]], tempo_changes, pauses)

    assert [division.time for division in timeline.divisions] == [pytest.approx(0.0), pytest.approx(3.0)]


def test_empty_measures_still_advance_the_grid() -> None:
    timeline = timeline_assembler.build_timeline([[], ["1000"]], TEMPO_120)

    assert [division.offset for division in timeline.divisions] == [192]
    assert timeline.divisions[0].time == pytest.approx(2.0)


def test_tempo_and_pause_lists_are_sorted() -> None:
    tempo_changes = [TempoChange(offset=192, bpm=240.0), TempoChange(offset=0, bpm=120.0)]
    pauses = [Pause(offset=100, seconds=0.1), Pause(offset=50, seconds=0.2)]

    timeline = timeline_assembler.build_timeline([["1000"]], tempo_changes, pauses)

    assert [item.offset for item in timeline.tempo_changes] == [0, 192]
    assert [item.offset for item in timeline.pauses] == [50, 100]


def test_format_errors_propagate() -> None:
    with pytest.raises(FormatError):
        timeline_assembler.build_timeline([["1000"] * 5], TEMPO_120)


def test_missing_tempo_is_reported_when_timing_is_needed() -> None:
    with pytest.raises(TimingPreconditionError):
        timeline_assembler.build_timeline([["1000"]], [])


def test_find_hold_end_returns_division_index() -> None:
    divisions = timeline_assembler.concatenate_measures([["0002", "0000", "1000", "0003"]])

    assert timeline_assembler.find_hold_end(divisions, 0, Direction.RIGHT) == 2
