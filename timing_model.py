# -*- coding: utf-8 -*-
########################
# timing_model.py
########################
# Purpose:
# - Single source of truth for chart timing.
# - Converts a rhythmic position (offset units, MEASURE_UNITS per measure) into elapsed
#   seconds under piecewise-constant tempo and instantaneous pauses.
#
# Design notes:
# - One beat is BEAT_UNITS offset units (a quarter note).
# - The final tempo extends indefinitely past the last breakpoint.
# - A pause counts only when its offset is strictly before the target offset.
# - Tempo and pause lists must be sorted ascending by offset (timeline_assembler.py sorts them).
# - No I/O. Keep this module pure and deterministic.
#
########################
# Interfaces:
# Public functions:
# - to_seconds(offset: int, tempo_changes: Sequence[TempoChange], pauses: Sequence[Pause]) -> float
# - tempo_at(offset: int, tempo_changes: Sequence[TempoChange]) -> float
# - beats_between(start_offset: int, end_offset: int, tempo_changes: Sequence[TempoChange]) -> float
#
# Inputs:
# - TempoChange and Pause lists parsed by sm_store.py.
#
# Outputs:
# - Division.time / Arrow.release_time in timeline_assembler.py.
# - Rates and averages in groove_radar.py.
#
########################

from __future__ import annotations

from typing import Sequence

from chart_models import BEAT_UNITS, Pause, TempoChange, TimingPreconditionError


def _require_tempo(tempo_changes: Sequence[TempoChange]) -> None:
    if not tempo_changes:
        raise TimingPreconditionError("Time conversion requires at least one tempo change")


def to_seconds(offset: int, tempo_changes: Sequence[TempoChange], pauses: Sequence[Pause] = ()) -> float:
    _require_tempo(tempo_changes)

    target = int(offset)
    seconds = 0.0
    done = 0
    current_bpm = float(tempo_changes[0].bpm)
    for tempo_change in tempo_changes:
        if tempo_change.offset >= target:
            break
        seconds += 60.0 / current_bpm * ((tempo_change.offset - done) / BEAT_UNITS)
        done = tempo_change.offset
        current_bpm = float(tempo_change.bpm)
    seconds += 60.0 / current_bpm * ((target - done) / BEAT_UNITS)

    for pause in pauses:
        if pause.offset < target:
            seconds += float(pause.seconds)
    return seconds


def tempo_at(offset: int, tempo_changes: Sequence[TempoChange]) -> float:
    """Tempo in effect at offset; a change exactly at offset is already in effect."""
    _require_tempo(tempo_changes)
    current_bpm = float(tempo_changes[0].bpm)
    for tempo_change in tempo_changes:
        if tempo_change.offset > int(offset):
            break
        current_bpm = float(tempo_change.bpm)
    return current_bpm


def beats_between(start_offset: int, end_offset: int, tempo_changes: Sequence[TempoChange]) -> float:
    """Integrate true beats elapsed between two offsets, one tempo segment at a time.

    Pauses are excluded: they add time but no beats. Segments are clipped to the
    requested range, so breakpoints past end_offset contribute nothing.
    """
    _require_tempo(tempo_changes)
    start = int(start_offset)
    end = int(end_offset)
    if end <= start:
        return 0.0

    boundaries = [tempo_change.offset for tempo_change in tempo_changes]
    boundaries.append(end)
    beats = 0.0
    for index, tempo_change in enumerate(tempo_changes):
        segment_start = max(start, tempo_change.offset if index > 0 else start)
        segment_end = min(end, boundaries[index + 1])
        if segment_end <= segment_start:
            continue
        elapsed_seconds = to_seconds(segment_end, tempo_changes) - to_seconds(segment_start, tempo_changes)
        beats += elapsed_seconds * float(tempo_change.bpm) / 60.0
    return beats


def _run_unit_tests() -> None:
    constant = [TempoChange(offset=0, bpm=120.0)]
    assert to_seconds(0, constant) == 0.0
    assert abs(to_seconds(BEAT_UNITS, constant) - 0.5) < 1e-9

    changing = [TempoChange(offset=0, bpm=120.0), TempoChange(offset=192, bpm=240.0)]
    assert abs(to_seconds(192, changing) - 2.0) < 1e-9
    assert abs(to_seconds(384, changing) - 3.0) < 1e-9

    pauses = [Pause(offset=96, seconds=1.5)]
    assert abs(to_seconds(96, changing, pauses) - 1.0) < 1e-9
    assert abs(to_seconds(97, changing, pauses) - (1.0 + 60.0 / 120.0 / BEAT_UNITS + 1.5)) < 1e-9

    assert abs(beats_between(0, 384, changing) - 8.0) < 1e-9
    assert tempo_at(192, changing) == 240.0

    try:
        to_seconds(10, [])
    except TimingPreconditionError:
        pass
    else:
        raise AssertionError("Expected TimingPreconditionError for an empty tempo list")


if __name__ == "__main__":
    _run_unit_tests()
    print("timing_model.py: ok")
