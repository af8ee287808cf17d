# -*- coding: utf-8 -*-
########################
# groove_radar.py
########################
# Purpose:
# - Reduce a finished Timeline into the five groove radar subscores:
#   stream, voltage, air, freeze and chaos.
#
# Design notes:
# - Every formula is a pure function of the Timeline (and its tempo / pause lists).
# - Each subscore is a two-regime piecewise-linear curve. The calibration constants are
#   empirical and must stay exactly as written; changing them changes what a score means.
# - Scores are truncated toward zero.
# - An empty timeline scores zero on every axis, through each calc_* function as well.
#
########################
# Interfaces:
# Public constants:
# - TRAILING_SILENCE_SECONDS = 1.6
# - COLOR_WEIGHTS: dict[Color, int]
#
# Public functions:
# - music_length(timeline: Timeline) -> float
# - stream_curve(notes_per_minute) / voltage_curve(density_per_minute) / air_curve(per_minute)
#   / freeze_curve(freeze_ratio) / chaos_curve(chaos_degree) -> float
# - calc_stream / calc_voltage / calc_air / calc_freeze / calc_chaos(timeline: Timeline) -> int
# - get_groove_radar(timeline: Timeline) -> GrooveRadar
#
# Inputs:
# - chart_models.Timeline from timeline_assembler.build_timeline().
#
# Outputs:
# - chart_models.GrooveRadar stored in ChartInfo by chart_engine.py.
#
########################

from __future__ import annotations

from typing import Dict, List, Sequence

from chart_models import (
    BEAT_UNITS,
    MEASURE_UNITS,
    Color,
    Division,
    GrooveRadar,
    Pause,
    TempoChange,
    Timeline,
)
import timing_model


TRAILING_SILENCE_SECONDS = 1.6

COLOR_WEIGHTS: Dict[Color, int] = {
    Color.RED: 0,
    Color.BLUE: 2,
    Color.YELLOW: 4,
    Color.GREEN: 5,
}


def music_length(timeline: Timeline) -> float:
    """Seconds from the chart start to the last note or hold release, plus trailing silence."""
    last_time = timeline.divisions[-1].time if timeline.divisions else 0.0
    for division in timeline.divisions:
        for arrow in division.arrows:
            if arrow.release_time is not None and arrow.release_time > last_time:
                last_time = arrow.release_time
    return last_time + TRAILING_SILENCE_SECONDS


def _average_bpm(timeline: Timeline, length_seconds: float) -> float:
    # Time-weighted: beats played per minute of chart, trailing silence included.
    beats = timing_model.beats_between(0, timeline.end_offset(), timeline.tempo_changes)
    return beats * 60.0 / length_seconds


########################
# Curves
########################


def stream_curve(notes_per_minute: float) -> float:
    if notes_per_minute < 300.0:
        return notes_per_minute / 3.0
    return (notes_per_minute - 139.0) * 100.0 / 161.0


def voltage_curve(density_per_minute: float) -> float:
    if density_per_minute < 600.0:
        return density_per_minute / 6.0
    return (density_per_minute + 594.0) * 100.0 / 1194.0


def air_curve(per_minute: float) -> float:
    if per_minute < 55.0:
        return per_minute * 20.0 / 11.0
    return (per_minute + 36.0) * 100.0 / 91.0


def freeze_curve(freeze_ratio: float) -> float:
    if freeze_ratio < 3500.0:
        return freeze_ratio / 35.0
    return (freeze_ratio + 2484.0) * 100.0 / 5984.0


def chaos_curve(chaos_degree: float) -> float:
    if chaos_degree < 2000.0:
        return chaos_degree / 20.0
    return (chaos_degree + 21605.0) * 100.0 / 23605.0


########################
# Stream
########################


def calc_stream(timeline: Timeline) -> int:
    notes_per_minute = len(timeline.divisions) / music_length(timeline) * 60.0
    return int(stream_curve(notes_per_minute))


########################
# Voltage
########################


def count_subsequent_divisions(section: Sequence[Division], offset: int) -> int:
    """Divisions strictly after offset and no more than one measure ahead of it."""
    return sum(1 for division in section if offset < division.offset <= offset + MEASURE_UNITS)


def tempo_sections(timeline: Timeline) -> List[List[Division]]:
    """Split the timeline at every tempo change; the last Division's offset closes the final section.

    tempo offsets 0, 20, 30 and divisions 1, 4, 21, 30, 35
      -> [1, 4], [21], [30]
    """
    if not timeline.divisions:
        return []
    boundaries = [tempo_change.offset for tempo_change in timeline.tempo_changes]
    boundaries.append(timeline.divisions[-1].offset)
    return [
        [division for division in timeline.divisions if start <= division.offset < end]
        for start, end in zip(boundaries, boundaries[1:])
    ]


def _max_density_in_section(section: Sequence[Division]) -> int:
    if not section:
        return 0
    return max(count_subsequent_divisions(section, division.offset) for division in section)


def max_density(timeline: Timeline) -> int:
    return max((_max_density_in_section(section) for section in tempo_sections(timeline)), default=0)


def calc_voltage(timeline: Timeline) -> int:
    density_per_minute = max_density(timeline) * _average_bpm(timeline, music_length(timeline)) / 4.0
    return int(voltage_curve(density_per_minute))


########################
# Air
########################


def calc_air(timeline: Timeline) -> int:
    jumps = sum(1 for division in timeline.divisions if division.is_jump())
    shocks = sum(1 for division in timeline.divisions if division.is_shock())
    per_minute = (jumps + shocks) / music_length(timeline) * 60.0
    return int(air_curve(per_minute))


########################
# Freeze
########################


def total_hold_beats(timeline: Timeline) -> float:
    return sum(
        max((arrow.hold_beats(division.offset) for arrow in division.arrows), default=0.0)
        for division in timeline.divisions
    )


def calc_freeze(timeline: Timeline) -> int:
    total_beats = timing_model.beats_between(0, timeline.end_offset(), timeline.tempo_changes)
    if total_beats <= 0.0:
        return 0
    freeze_ratio = 10000.0 * total_hold_beats(timeline) / total_beats
    return int(freeze_curve(freeze_ratio))


########################
# Chaos
########################


def _rhythm_base_value(divisions: Sequence[Division]) -> float:
    base_value = 0.0
    for previous, current in zip(divisions, divisions[1:]):
        gap = current.offset - previous.offset
        base_value += len(current.arrows) * COLOR_WEIGHTS[current.color] * BEAT_UNITS / gap
    return base_value


def tempo_churn(tempo_changes: Sequence[TempoChange], pauses: Sequence[Pause]) -> float:
    """Sum of |delta bpm| over tempo changes plus the tempo in effect at every pause.

    A tempo change at the same offset as a pause applies first.
    """
    if not tempo_changes:
        return 0.0
    churn = sum(
        abs(float(current.bpm) - float(previous.bpm))
        for previous, current in zip(tempo_changes, tempo_changes[1:])
    )
    churn += sum(timing_model.tempo_at(pause.offset, tempo_changes) for pause in pauses)
    return churn


def calc_chaos(timeline: Timeline) -> int:
    length_seconds = music_length(timeline)
    change_per_minute = tempo_churn(timeline.tempo_changes, timeline.pauses) * 60.0 / length_seconds
    correction = 1.0 + change_per_minute / 1500.0
    chaos_degree = _rhythm_base_value(timeline.divisions) * correction * 100.0 / length_seconds
    return int(chaos_curve(chaos_degree))


def get_groove_radar(timeline: Timeline) -> GrooveRadar:
    if not timeline.divisions:
        return GrooveRadar(stream=0, voltage=0, air=0, freeze=0, chaos=0)
    return GrooveRadar(
        stream=calc_stream(timeline),
        voltage=calc_voltage(timeline),
        air=calc_air(timeline),
        freeze=calc_freeze(timeline),
        chaos=calc_chaos(timeline),
    )
