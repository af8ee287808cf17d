# -*- coding: utf-8 -*-
########################
# song_export.py
########################
# Purpose:
# - Serialize scored charts into the viewer's JSON layout.
# - Export a whole songs directory: one JSON per chart plus songs.json listing every song.
#
# Design notes:
# - Simfiles are independent, so the export fans out over a process pool when jobs > 1.
#   Results are consumed in candidate order, so output is identical to a serial run.
# - A simfile that fails to load is logged and skipped, unless strict is set, in which
#   case the export stops with ExportError.
# - Payload builders are pure. Only export_library() writes files.
#
########################
# Interfaces:
# Public exceptions:
# - class ExportError(Exception)
#
# Public dataclasses:
# - ExportOptions(output_dir: pathlib.Path, jobs: int, strict: bool, pretty_json: bool, extensions: tuple[str, ...])
# - ExportedSimfile(dir_name: str, simfile_path: pathlib.Path, song: dict, charts: tuple[tuple[str, dict], ...])
# - ExportSummary(song_count: int, chart_count: int, skipped: list[tuple[pathlib.Path, str]], songs_index_path: pathlib.Path)
#
# Public functions:
# - arrow_payload(arrow) / division_payload(division) -> dict
# - chart_content_payload(chart: chart_engine.Chart) -> dict
# - chart_info_payload(info: ChartInfo) -> dict
# - format_timestamp(file_path: pathlib.Path) -> str
# - song_payload(dir_name: str, loaded: chart_engine.LoadedSimfileCharts, *, timestamp: str) -> dict
# - export_simfile(candidate: library_index.SimfileCandidate) -> ExportedSimfile
# - export_library(songs_dir: pathlib.Path, options: ExportOptions) -> ExportSummary
#
# Inputs:
# - songs_dir and ExportOptions from the CLI / config.py.
#
# Outputs:
# - <output_dir>/<dir_name>/<Difficulty>.json and <output_dir>/songs.json
#
########################

from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor
import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Sequence, Tuple, Union

from chart_models import Arrow, ChartInfo, Division
import chart_engine
import library_index
import paths
import sm_store


logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class ExportError(Exception):
    """Raised when a strict export meets a simfile that cannot be loaded."""


@dataclass(frozen=True)
class ExportOptions:
    output_dir: Path
    jobs: int = 1
    strict: bool = False
    pretty_json: bool = False
    extensions: Tuple[str, ...] = sm_store.SUPPORTED_SUFFIXES


@dataclass(frozen=True)
class ExportedSimfile:
    dir_name: str
    simfile_path: Path
    song: Dict[str, Any]
    charts: Tuple[Tuple[str, Dict[str, Any]], ...]


@dataclass
class ExportSummary:
    song_count: int = 0
    chart_count: int = 0
    skipped: List[Tuple[Path, str]] = field(default_factory=list)
    songs_index_path: Path = Path()


def _serialize_dataclass(value: Any) -> Any:
    if dataclasses.is_dataclass(value):
        result: Dict[str, Any] = {}
        for item in dataclasses.fields(value):
            result[item.name] = _serialize_dataclass(getattr(value, item.name))
        return result
    if isinstance(value, (list, tuple)):
        return [_serialize_dataclass(item) for item in value]
    return value


def arrow_payload(arrow: Arrow) -> Dict[str, Any]:
    return {
        "direction": arrow.direction.value,
        "arrow_type": arrow.kind.value,
        "end": int(arrow.release_offset) if arrow.release_offset is not None else 0,
        "end_time": float(arrow.release_time) if arrow.release_time is not None else 0.0,
    }


def division_payload(division: Division) -> Dict[str, Any]:
    return {
        "arrows": [arrow_payload(arrow) for arrow in division.arrows],
        "color": division.color.value,
        "offset": int(division.offset),
        "time": float(division.time),
    }


def chart_content_payload(chart: chart_engine.Chart) -> Dict[str, Any]:
    return {
        "stream": [division_payload(division) for division in chart.timeline.divisions],
        "stream_info": [],
        "gimmick": {
            "soflan": _serialize_dataclass(chart.tempo_displays()),
            "stop": _serialize_dataclass(chart.pause_displays()),
        },
    }


def chart_info_payload(info: ChartInfo) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "chart_type": info.chart_type.value,
        "difficulty": info.difficulty.value,
        "level": int(info.level),
        "max_combo": int(info.max_combo),
    }
    payload.update(_serialize_dataclass(info.groove_radar))
    return payload


def format_timestamp(file_path: Path) -> str:
    """Local modification time of file_path, e.g. "2024-05-01 21:03:44"."""
    return datetime.fromtimestamp(Path(file_path).stat().st_mtime).strftime(TIMESTAMP_FORMAT)


def song_payload(dir_name: str, loaded: chart_engine.LoadedSimfileCharts, *, timestamp: str) -> Dict[str, Any]:
    header = loaded.simfile.header
    return {
        "title": header.title,
        "dir_name": str(dir_name),
        "charts": [chart_info_payload(chart.info) for chart in loaded.charts],
        "bpm": sm_store.format_display_bpm(header.display_bpm_text, header.tempo_changes or _first_chart_tempo(loaded)),
        "music": {
            "path": header.music_path,
            "offset": float(header.offset_seconds),
        },
        "banner": header.banner_path,
        "timestamp": timestamp,
    }


def _first_chart_tempo(loaded: chart_engine.LoadedSimfileCharts) -> Sequence[Any]:
    for step_chart in loaded.simfile.charts:
        if step_chart.tempo_changes:
            return step_chart.tempo_changes
    return ()


def export_simfile(candidate: library_index.SimfileCandidate) -> ExportedSimfile:
    """Load, score and serialize one simfile. Runs inside worker processes."""
    loaded = chart_engine.ChartEngine().load_simfile_charts(candidate.simfile_path)
    timestamp = format_timestamp(candidate.simfile_path)
    return ExportedSimfile(
        dir_name=candidate.dir_name,
        simfile_path=candidate.simfile_path,
        song=song_payload(candidate.dir_name, loaded, timestamp=timestamp),
        charts=tuple((chart.info.difficulty.value, chart_content_payload(chart)) for chart in loaded.charts),
    )


Outcome = Union[ExportedSimfile, chart_engine.ChartLoadError]


def _export_outcomes(
    candidates: Sequence[library_index.SimfileCandidate],
    jobs: int,
) -> Iterator[Tuple[library_index.SimfileCandidate, Outcome]]:
    if jobs <= 1 or len(candidates) <= 1:
        for candidate in candidates:
            try:
                yield candidate, export_simfile(candidate)
            except chart_engine.ChartLoadError as exc:
                yield candidate, exc
        return

    with ProcessPoolExecutor(max_workers=jobs) as executor:
        futures = [(candidate, executor.submit(export_simfile, candidate)) for candidate in candidates]
        for candidate, future in futures:
            try:
                yield candidate, future.result()
            except chart_engine.ChartLoadError as exc:
                yield candidate, exc


def _dump_json(payload: Any, *, pretty: bool) -> str:
    if pretty:
        return json.dumps(payload, ensure_ascii=False, indent=2)
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def _unique_stem(label: str, used_stems: Dict[str, int]) -> str:
    count = used_stems.get(label, 0) + 1
    used_stems[label] = count
    return label if count == 1 else f"{label}_{count}"


def export_library(songs_dir: Path, options: ExportOptions) -> ExportSummary:
    output_dir = Path(options.output_dir)
    candidates = library_index.list_simfile_candidates(Path(songs_dir), extensions=options.extensions)
    logger.info("Found %d simfiles under %s", len(candidates), songs_dir)

    summary = ExportSummary(songs_index_path=paths.songs_index_path(output_dir))
    songs: List[Dict[str, Any]] = []
    used_stems_by_dir: Dict[str, Dict[str, int]] = {}

    for candidate, outcome in _export_outcomes(candidates, int(options.jobs)):
        if isinstance(outcome, chart_engine.ChartLoadError):
            if options.strict:
                raise ExportError(str(outcome)) from outcome
            logger.error("Skipping %s: %s", candidate.simfile_path, outcome)
            summary.skipped.append((candidate.simfile_path, str(outcome)))
            continue

        used_stems = used_stems_by_dir.setdefault(outcome.dir_name, {})
        for difficulty_label, content in outcome.charts:
            chart_path = paths.chart_output_path(output_dir, outcome.dir_name, _unique_stem(difficulty_label, used_stems))
            chart_path.parent.mkdir(parents=True, exist_ok=True)
            chart_path.write_text(_dump_json(content, pretty=options.pretty_json), encoding="utf-8")
            logger.debug("Wrote %s", chart_path)
            summary.chart_count += 1

        songs.append(outcome.song)
        summary.song_count += 1
        logger.info("Exported %s (%d charts)", candidate.simfile_path, len(outcome.charts))

    output_dir.mkdir(parents=True, exist_ok=True)
    summary.songs_index_path.write_text(_dump_json(songs, pretty=options.pretty_json), encoding="utf-8")
    logger.info("Wrote %s (%d songs, %d skipped)", summary.songs_index_path, summary.song_count, len(summary.skipped))
    return summary
