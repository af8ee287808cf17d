# -*- coding: utf-8 -*-
########################
# chart_engine.py
########################
# Purpose:
# - Turn a parsed simfile into scored charts.
# - One Chart per dance-single note block: finished Timeline plus ChartInfo with groove radar.
#
########################
# Key Logic:
# - Only dance-single (fixed 4-column layout) is converted. Other step types are skipped.
#   Difficulty and meter are validated only for the charts that are converted.
# - Strict contract:
#   - Any simfile or chart error for a file is reported as ChartLoadError naming the file
#     and the chart. No partial chart is produced.
#   - Skipping a failed file is the batch driver's decision (song_export.py), not ours.
#
########################
# Interfaces:
# Public exceptions:
# - class ChartLoadError(Exception)
#
# Public dataclasses:
# - @dataclass(frozen=True) class Chart
#   - info: ChartInfo
#   - timeline: Timeline
#   - description: str
#   - tempo_displays() -> tuple[TempoDisplay, ...]
#   - pause_displays() -> tuple[PauseDisplay, ...]
# - @dataclass(frozen=True) class LoadedSimfileCharts
#   - simfile: sm_store.Simfile
#   - charts: tuple[Chart, ...]
#
# Public functions:
# - build_chart(step_chart: sm_store.StepChartBlock) -> Chart
#
# Public classes:
# - class ChartEngine
#   - load_simfile_charts(simfile_path: pathlib.Path) -> LoadedSimfileCharts
#
# Inputs:
# - simfile_path from library_index.py.
#
# Outputs:
# - LoadedSimfileCharts for song_export.py and the CLI.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import List, Tuple

from chart_models import (
    ChartError,
    ChartInfo,
    ChartType,
    PauseDisplay,
    TempoDisplay,
    Timeline,
)
import groove_radar
import sm_store
import timeline_assembler


logger = logging.getLogger(__name__)


class ChartLoadError(Exception):
    """Raised when a simfile or one of its charts fails parsing, resolution or timing."""


@dataclass(frozen=True)
class Chart:
    info: ChartInfo
    timeline: Timeline
    description: str = ""

    def tempo_displays(self) -> Tuple[TempoDisplay, ...]:
        return tuple(TempoDisplay.from_tempo_change(item) for item in self.timeline.tempo_changes)

    def pause_displays(self) -> Tuple[PauseDisplay, ...]:
        return tuple(PauseDisplay.from_pause(item) for item in self.timeline.pauses)


@dataclass(frozen=True)
class LoadedSimfileCharts:
    simfile: sm_store.Simfile
    charts: Tuple[Chart, ...]


def build_chart(step_chart: sm_store.StepChartBlock) -> Chart:
    chart_type = ChartType.from_steps_type(step_chart.step_type)
    if chart_type is not ChartType.DANCE_SINGLE:
        raise ValueError(f"Only dance-single charts can be built, got {step_chart.step_type!r}")
    difficulty = sm_store.normalize_difficulty(step_chart.difficulty_text)
    level = sm_store.parse_meter(step_chart.meter_text)

    timeline = timeline_assembler.build_timeline(
        step_chart.measures,
        step_chart.tempo_changes,
        step_chart.pauses,
    )
    info = ChartInfo(
        chart_type=chart_type,
        difficulty=difficulty,
        level=level,
        max_combo=len(timeline.divisions),
        groove_radar=groove_radar.get_groove_radar(timeline),
    )
    return Chart(info=info, timeline=timeline, description=step_chart.description)


class ChartEngine:
    def load_simfile_charts(self, simfile_path: Path) -> LoadedSimfileCharts:
        path = Path(simfile_path)
        try:
            simfile = sm_store.load_simfile(path)
        except sm_store.SimfileError as exc:
            raise ChartLoadError(f"Failed to load simfile {path}: {exc}") from exc

        charts: List[Chart] = []
        for step_chart in simfile.charts:
            if ChartType.from_steps_type(step_chart.step_type) is not ChartType.DANCE_SINGLE:
                logger.debug("Skipping %s chart in %s", step_chart.step_type, path)
                continue
            try:
                charts.append(build_chart(step_chart))
            except (ChartError, sm_store.SimfileError) as exc:
                raise ChartLoadError(
                    f"Failed to build {step_chart.difficulty_text} chart of {path}: {exc}"
                ) from exc

        return LoadedSimfileCharts(simfile=simfile, charts=tuple(charts))
