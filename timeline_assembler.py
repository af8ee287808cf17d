# -*- coding: utf-8 -*-
########################
# timeline_assembler.py
########################
# Purpose:
# - Build the finished, time-stamped note timeline for one chart.
# - Pairs every hold start with the next same-lane hold end and folds the end into it.
#
# Design notes:
# - Steps: concatenate measures -> resolve holds -> timestamp -> prune.
# - Never mutates grid_decoder output. Resolved Divisions are new objects.
# - An unterminated hold is fatal (UnresolvedHoldError). It is never treated as a tap.
# - Hold ends that no hold start claims are dropped with a warning.
#
########################
# Interfaces:
# Public functions:
# - concatenate_measures(measures: Sequence[Sequence[str]]) -> list[Division]
# - find_hold_end(divisions: Sequence[Division], start_index: int, direction: Direction) -> int
# - build_timeline(measures, tempo_changes, pauses) -> Timeline
#
# Inputs:
# - Measures (each a list of grid rows) from sm_store.split_measures().
# - TempoChange / Pause lists from sm_store.py.
#
# Outputs:
# - chart_models.Timeline consumed by groove_radar.py and song_export.py.
#
########################

from __future__ import annotations

import logging
from typing import List, Sequence, Set, Tuple

from chart_models import (
    MEASURE_UNITS,
    Arrow,
    ArrowKind,
    Direction,
    Division,
    Pause,
    TempoChange,
    Timeline,
    UnresolvedHoldError,
)
import grid_decoder
import timing_model


logger = logging.getLogger(__name__)


def concatenate_measures(measures: Sequence[Sequence[str]]) -> List[Division]:
    divisions: List[Division] = []
    for measure_index, rows in enumerate(measures):
        # An empty measure still occupies its slot on the grid.
        if not rows:
            continue
        divisions.extend(grid_decoder.decode_measure(rows, measure_index * MEASURE_UNITS))
    return divisions


def find_hold_end(divisions: Sequence[Division], start_index: int, direction: Direction) -> int:
    """Return the index of the first later Division holding a same-lane hold end."""
    for index in range(start_index + 1, len(divisions)):
        if any(arrow.is_hold_end(direction) for arrow in divisions[index].arrows):
            return index
    start_offset = divisions[start_index].offset
    raise UnresolvedHoldError(f"Hold in lane {direction.value!r} at offset {start_offset} never ends")


def _resolve_holds(divisions: Sequence[Division]) -> Tuple[List[List[Arrow]], Set[Tuple[int, Direction]]]:
    resolved: List[List[Arrow]] = []
    claimed_ends: Set[Tuple[int, Direction]] = set()
    for index, division in enumerate(divisions):
        arrows: List[Arrow] = []
        for arrow in division.arrows:
            if arrow.kind is ArrowKind.HOLD_END:
                continue
            if arrow.kind is ArrowKind.HOLD_START:
                end_index = find_hold_end(divisions, index, arrow.direction)
                claimed_ends.add((end_index, arrow.direction))
                arrow = Arrow(
                    direction=arrow.direction,
                    kind=arrow.kind,
                    release_offset=divisions[end_index].offset,
                )
            arrows.append(arrow)
        resolved.append(arrows)
    return resolved, claimed_ends


def _warn_orphan_hold_ends(divisions: Sequence[Division], claimed_ends: Set[Tuple[int, Direction]]) -> None:
    for index, division in enumerate(divisions):
        for arrow in division.arrows:
            if arrow.kind is ArrowKind.HOLD_END and (index, arrow.direction) not in claimed_ends:
                logger.warning(
                    "Dropping hold end in lane %r at offset %d with no matching hold start",
                    arrow.direction.value,
                    division.offset,
                )


def build_timeline(
    measures: Sequence[Sequence[str]],
    tempo_changes: Sequence[TempoChange],
    pauses: Sequence[Pause] = (),
) -> Timeline:
    sorted_tempo_changes = tuple(sorted(tempo_changes, key=lambda item: item.offset))
    sorted_pauses = tuple(sorted(pauses, key=lambda item: item.offset))

    divisions = concatenate_measures(measures)
    resolved_arrows, claimed_ends = _resolve_holds(divisions)
    _warn_orphan_hold_ends(divisions, claimed_ends)

    timed_divisions: List[Division] = []
    for division, arrows in zip(divisions, resolved_arrows):
        if not arrows:
            continue
        timed_arrows = tuple(
            Arrow(
                direction=arrow.direction,
                kind=arrow.kind,
                release_offset=arrow.release_offset,
                release_time=(
                    timing_model.to_seconds(arrow.release_offset, sorted_tempo_changes, sorted_pauses)
                    if arrow.release_offset is not None
                    else None
                ),
            )
            for arrow in arrows
        )
        timed_divisions.append(
            Division(
                arrows=timed_arrows,
                color=division.color,
                offset=division.offset,
                time=timing_model.to_seconds(division.offset, sorted_tempo_changes, sorted_pauses),
            )
        )

    return Timeline(
        divisions=tuple(timed_divisions),
        tempo_changes=sorted_tempo_changes,
        pauses=sorted_pauses,
    )
