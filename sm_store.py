# -*- coding: utf-8 -*-
########################
# sm_store.py
########################
# Purpose:
# - Parse StepMania .sm and .ssc files into song-wide tags and per-chart note blocks.
# - Convert #BPMS / #STOPS into TempoChange / Pause lists on the rhythmic offset grid.
# - Split note block text into measures of grid rows.
#
# Design notes:
# - No gameplay logic here. Grid decoding happens in grid_decoder.py.
# - Parsing tolerates comments and whitespace but never silently accepts invalid charts.
# - Every parsed chart is guaranteed at least one tempo change, so the timing model
#   precondition cannot be violated from parsed data.
# - Difficulty and meter stay raw text. Only charts that are built get them validated
#   (chart_engine.build_chart), so an unfamiliar step type cannot break its siblings.
#
########################
# Interfaces:
# Public dataclasses:
# - SimfileHeader(title, music_path, banner_path, offset_seconds, display_bpm_text, tempo_changes, pauses)
# - StepChartBlock(step_type, description, difficulty_text, meter_text, measures, tempo_changes, pauses)
# - Simfile(header: SimfileHeader, charts: tuple[StepChartBlock, ...], source_path: pathlib.Path)
#
# Public functions:
# - normalize_difficulty(difficulty: str) -> Difficulty
# - parse_meter(meter_text: str) -> int
# - parse_tempo_changes(raw_text: str) -> tuple[TempoChange, ...]
# - parse_pauses(raw_text: str) -> tuple[Pause, ...]
# - split_measures(notes_text: str) -> tuple[tuple[str, ...], ...]
# - format_display_bpm(display_bpm_text: Optional[str], tempo_changes) -> str
# - parse_sm_text(simfile_text: str, *, source_path: pathlib.Path) -> Simfile
# - parse_ssc_text(simfile_text: str, *, source_path: pathlib.Path) -> Simfile
# - load_simfile(simfile_path: pathlib.Path) -> Simfile
#
# Inputs:
# - Simfile paths from library_index.py.
#
# Outputs:
# - Simfile records for chart_engine.py.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import math
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from chart_models import BEAT_UNITS, Difficulty, Pause, TempoChange


SUPPORTED_SUFFIXES = (".sm", ".ssc")


class SimfileError(Exception):
    """Base error for simfile parsing and validation."""


class SimfileParseError(SimfileError):
    """Raised when the file cannot be parsed into expected .sm / .ssc structure."""


@dataclass(frozen=True)
class SimfileHeader:
    title: str
    music_path: str
    banner_path: str
    offset_seconds: float
    display_bpm_text: Optional[str]
    tempo_changes: Tuple[TempoChange, ...]
    pauses: Tuple[Pause, ...]


@dataclass(frozen=True)
class StepChartBlock:
    step_type: str
    description: str
    difficulty_text: str
    meter_text: str
    measures: Tuple[Tuple[str, ...], ...]
    tempo_changes: Tuple[TempoChange, ...]
    pauses: Tuple[Pause, ...]


@dataclass(frozen=True)
class Simfile:
    header: SimfileHeader
    charts: Tuple[StepChartBlock, ...]
    source_path: Path


def normalize_difficulty(difficulty: str) -> Difficulty:
    try:
        return Difficulty.from_label(difficulty)
    except ValueError as exc:
        raise SimfileParseError(str(exc)) from exc


def _read_text_utf8(file_path: Path) -> str:
    try:
        return file_path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise SimfileParseError(f"Simfile is not valid UTF-8: {file_path}") from exc
    except OSError as exc:
        raise SimfileParseError(f"Failed to read simfile: {file_path}") from exc


def _strip_comments(simfile_text: str) -> str:
    lines: List[str] = []
    for raw_line in simfile_text.splitlines():
        line_text = raw_line.split("//", 1)[0].strip()
        if line_text:
            lines.append(line_text)
    return "\n".join(lines)


def _split_statements(section_text: str) -> List[Tuple[str, str]]:
    """Split "#KEY:value;" statements. Values keep inner colons and newlines."""
    statements: List[Tuple[str, str]] = []
    for statement in section_text.split(";"):
        parts = statement.strip().split(":")
        if len(parts) < 2:
            continue
        key = parts[0].strip().lstrip("#").strip().upper()
        statements.append((key, ":".join(parts[1:])))
    return statements


def _beats_to_offset(beat_text: str, item_text: str) -> int:
    try:
        return int(float(beat_text.strip()) * BEAT_UNITS)
    except ValueError as exc:
        raise SimfileParseError(f"Invalid beat value in segment: {item_text!r}") from exc


def _split_pairs(raw_text: str, tag_name: str) -> List[Tuple[int, float]]:
    pairs: List[Tuple[int, float]] = []
    for item in str(raw_text or "").split(","):
        item_text = item.strip()
        if not item_text:
            continue
        if "=" not in item_text:
            raise SimfileParseError(f"Invalid #{tag_name} segment: {item_text!r}")
        beat_text, value_text = item_text.split("=", 1)
        offset = _beats_to_offset(beat_text, item_text)
        try:
            value = float(value_text.strip())
        except ValueError as exc:
            raise SimfileParseError(f"Invalid #{tag_name} segment numeric values: {item_text!r}") from exc
        pairs.append((offset, value))
    pairs.sort(key=lambda pair: pair[0])
    return pairs


def parse_tempo_changes(raw_text: str) -> Tuple[TempoChange, ...]:
    tempo_changes: List[TempoChange] = []
    for offset, bpm in _split_pairs(raw_text, "BPMS"):
        if bpm <= 0.0:
            raise SimfileParseError(f"Invalid BPM value (must be > 0): {bpm!r}")
        tempo_changes.append(TempoChange(offset=offset, bpm=bpm))
    if not tempo_changes:
        raise SimfileParseError("Missing #BPMS: at least one tempo is required")
    return tuple(tempo_changes)


def parse_pauses(raw_text: str) -> Tuple[Pause, ...]:
    return tuple(Pause(offset=offset, seconds=seconds) for offset, seconds in _split_pairs(raw_text, "STOPS"))


def split_measures(notes_text: str) -> Tuple[Tuple[str, ...], ...]:
    """Split the measure list of a note block into rows, one tuple per measure."""
    measures: List[Tuple[str, ...]] = []
    for measure_text in str(notes_text or "").split(","):
        rows = tuple(line.strip() for line in measure_text.splitlines() if line.strip())
        measures.append(rows)
    # A trailing comma leaves an empty final measure that is not part of the chart.
    while measures and not measures[-1]:
        measures.pop()
    return tuple(measures)


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def format_display_bpm(display_bpm_text: Optional[str], tempo_changes: Sequence[TempoChange]) -> str:
    """Display BPM string: "150", "75-300". #DISPLAYBPM wins when it is numeric."""
    display_text = str(display_bpm_text or "").strip()
    if display_text:
        try:
            values = [float(part) for part in display_text.split(":")]
        except ValueError:
            values = []
        if len(values) == 1:
            return str(_round_half_away(values[0]))
        if len(values) == 2:
            return f"{_round_half_away(values[0])}-{_round_half_away(values[1])}"

    bpm_values = [float(tempo_change.bpm) for tempo_change in tempo_changes]
    if not bpm_values:
        return ""
    max_bpm = max(bpm_values)
    min_bpm = min(bpm_values)
    if abs(max_bpm - min_bpm) < 0.1:
        return str(_round_half_away(max_bpm))
    return f"{_round_half_away(min_bpm)}-{_round_half_away(max_bpm)}"


def _parse_offset_seconds(tags: Dict[str, str]) -> float:
    raw_text = tags.get("OFFSET", "").strip()
    if not raw_text:
        return 0.0
    try:
        return float(raw_text)
    except ValueError as exc:
        raise SimfileParseError(f"Invalid #OFFSET value: {raw_text!r}") from exc


def parse_meter(meter_text: str) -> int:
    meter_text = str(meter_text or "").strip()
    try:
        return int(meter_text)
    except ValueError as exc:
        raise SimfileParseError(f"Invalid meter value: {meter_text!r}") from exc


def _build_header_from_tags(tags: Dict[str, str]) -> SimfileHeader:
    # .ssc files may leave #BPMS to each chart; _require_tempo checks per chart.
    bpms_text = tags.get("BPMS", "")
    return SimfileHeader(
        title=tags.get("TITLE", "").strip() or "Untitled",
        music_path=tags.get("MUSIC", "").strip(),
        banner_path=tags.get("BANNER", "").strip(),
        offset_seconds=_parse_offset_seconds(tags),
        display_bpm_text=tags.get("DISPLAYBPM", "").strip() or None,
        tempo_changes=parse_tempo_changes(bpms_text) if bpms_text.strip() else (),
        pauses=parse_pauses(tags.get("STOPS", "")),
    )


def _require_tempo(tempo_changes: Tuple[TempoChange, ...], chart_label: str) -> Tuple[TempoChange, ...]:
    if not tempo_changes:
        raise SimfileParseError(f"Missing #BPMS for chart {chart_label}")
    return tempo_changes


def _parse_sm_notes_block(block_body: str, header: SimfileHeader) -> StepChartBlock:
    parts = block_body.split(":", 5)
    if len(parts) != 6:
        raise SimfileParseError("Invalid #NOTES block structure: expected 6 colon-separated fields")

    step_type_text = parts[0].strip()
    difficulty_text = parts[2].strip()
    # radar values are parts[4], ignored but required
    if not step_type_text:
        raise SimfileParseError("Missing step type in #NOTES block")
    if not difficulty_text:
        raise SimfileParseError("Missing difficulty in #NOTES block")

    return StepChartBlock(
        step_type=step_type_text,
        description=parts[1].strip(),
        difficulty_text=difficulty_text,
        meter_text=parts[3].strip(),
        measures=split_measures(parts[5]),
        tempo_changes=_require_tempo(header.tempo_changes, f"{step_type_text} {difficulty_text}"),
        pauses=header.pauses,
    )


def parse_sm_text(simfile_text: str, *, source_path: Path) -> Simfile:
    tags: Dict[str, str] = {}
    notes_blocks: List[str] = []
    for key, value in _split_statements(_strip_comments(simfile_text)):
        if key == "NOTES":
            notes_blocks.append(value)
        else:
            tags[key] = value

    if not notes_blocks:
        raise SimfileParseError("No #NOTES blocks found")

    header = _build_header_from_tags(tags)
    charts = tuple(_parse_sm_notes_block(block_body, header) for block_body in notes_blocks)
    return Simfile(header=header, charts=charts, source_path=Path(source_path))


def _parse_ssc_chart(chart_text: str, header: SimfileHeader) -> StepChartBlock:
    tags = dict(_split_statements(chart_text))
    step_type_text = tags.get("STEPSTYPE", "").strip()
    difficulty_text = tags.get("DIFFICULTY", "").strip()
    if not step_type_text:
        raise SimfileParseError("Missing #STEPSTYPE in #NOTEDATA section")
    if not difficulty_text:
        raise SimfileParseError("Missing #DIFFICULTY in #NOTEDATA section")
    if "NOTES" not in tags:
        raise SimfileParseError("Missing #NOTES in #NOTEDATA section")

    # Per-chart timing overrides the song-wide timing.
    tempo_changes = parse_tempo_changes(tags["BPMS"]) if tags.get("BPMS", "").strip() else header.tempo_changes
    pauses = parse_pauses(tags["STOPS"]) if "STOPS" in tags else header.pauses

    return StepChartBlock(
        step_type=step_type_text,
        description=tags.get("DESCRIPTION", "").strip(),
        difficulty_text=difficulty_text,
        meter_text=tags.get("METER", "").strip(),
        measures=split_measures(tags["NOTES"]),
        tempo_changes=_require_tempo(tempo_changes, f"{step_type_text} {difficulty_text}"),
        pauses=pauses,
    )


def parse_ssc_text(simfile_text: str, *, source_path: Path) -> Simfile:
    sections = _strip_comments(simfile_text).split("#NOTEDATA:;")
    if len(sections) < 2:
        raise SimfileParseError("No #NOTEDATA sections found")

    header = _build_header_from_tags(dict(_split_statements(sections[0])))
    charts = tuple(_parse_ssc_chart(chart_text, header) for chart_text in sections[1:])
    return Simfile(header=header, charts=charts, source_path=Path(source_path))


def load_simfile(simfile_path: Path) -> Simfile:
    path = Path(simfile_path)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise SimfileParseError(f"Unsupported simfile format: {path}")

    simfile_text = _read_text_utf8(path)
    if suffix == ".ssc":
        return parse_ssc_text(simfile_text, source_path=path)
    return parse_sm_text(simfile_text, source_path=path)
