# -*- coding: utf-8 -*-
########################
# chart_models.py
########################
# Purpose:
# - Data models for decoded charts, timing gimmicks and groove radar scores.
# - Error taxonomy shared by grid_decoder.py, timeline_assembler.py and timing_model.py.
#
# Design notes:
# - Every value type is a frozen dataclass. Later pipeline stages build new copies, never patch.
# - Enums are closed sets. Values are the lowercase names used in exported JSON.
# - No I/O. Pure data definitions.
#
########################
# Interfaces:
# Constants:
# - MEASURE_UNITS = 192, BEAT_UNITS = 48
#
# Public enums:
# - class Direction(enum.Enum): LEFT | DOWN | UP | RIGHT
# - class ArrowKind(enum.Enum): NONE | TAP | HOLD_START | HOLD_END | MINE
# - class Color(enum.Enum): RED | BLUE | YELLOW | GREEN
# - class ChartType(enum.Enum): DANCE_SINGLE | DANCE_DOUBLE
# - class Difficulty(enum.Enum): BEGINNER | EASY | MEDIUM | HARD | CHALLENGE | EDIT
#
# Public dataclasses:
# - Arrow(direction, kind, release_offset: Optional[int], release_time: Optional[float])
# - Division(arrows: tuple[Arrow, ...], color: Color, offset: int, time: float)
# - TempoChange(offset: int, bpm: float)
# - Pause(offset: int, seconds: float)
# - Timeline(divisions, tempo_changes, pauses)
# - GrooveRadar(stream, voltage, air, freeze, chaos)
# - TempoDisplay(division: float, bpm: float), PauseDisplay(division: float, time: float)
# - ChartInfo(chart_type, difficulty, level, max_combo, groove_radar)
#
# Public exceptions:
# - ChartError -> FormatError | UnresolvedHoldError | TimingPreconditionError
#
########################

from __future__ import annotations

from dataclasses import dataclass
import enum
from typing import Optional, Tuple


MEASURE_UNITS = 192
BEAT_UNITS = MEASURE_UNITS // 4


class ChartError(Exception):
    """Base error for charts that cannot be decoded, resolved or timed."""


class FormatError(ChartError):
    """Raised when a grid row or measure violates the note grid format."""


class UnresolvedHoldError(ChartError):
    """Raised when a hold start has no later hold end in the same lane."""


class TimingPreconditionError(ChartError):
    """Raised when time conversion is requested without any tempo."""


class Direction(enum.Enum):
    LEFT = "left"
    DOWN = "down"
    UP = "up"
    RIGHT = "right"


# Grid column index -> lane.
COLUMN_DIRECTIONS: Tuple[Direction, ...] = (
    Direction.LEFT,
    Direction.DOWN,
    Direction.UP,
    Direction.RIGHT,
)


class ArrowKind(enum.Enum):
    NONE = "none"
    TAP = "normal"
    HOLD_START = "freeze"
    HOLD_END = "freezeend"
    MINE = "mine"


class Color(enum.Enum):
    RED = "red"
    BLUE = "blue"
    YELLOW = "yellow"
    GREEN = "green"


class ChartType(enum.Enum):
    DANCE_SINGLE = "DanceSingle"
    DANCE_DOUBLE = "DanceDouble"

    @classmethod
    def from_steps_type(cls, steps_type: str) -> Optional["ChartType"]:
        return _STEPS_TYPES.get(str(steps_type or "").strip().lower())


_STEPS_TYPES = {
    "dance-single": ChartType.DANCE_SINGLE,
    "dance-double": ChartType.DANCE_DOUBLE,
}


class Difficulty(enum.Enum):
    BEGINNER = "Beginner"
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"
    CHALLENGE = "Challenge"
    EDIT = "Edit"

    @classmethod
    def from_label(cls, label: str) -> "Difficulty":
        label_text = str(label or "").strip().lower()
        for member in cls:
            if member.value.lower() == label_text:
                return member
        raise ValueError(
            f"Unsupported difficulty: {label!r}. Allowed: {[member.value for member in cls]}"
        )


@dataclass(frozen=True)
class Arrow:
    direction: Direction
    kind: ArrowKind
    release_offset: Optional[int] = None
    release_time: Optional[float] = None

    def is_hold_end(self, direction: Direction) -> bool:
        return self.kind is ArrowKind.HOLD_END and self.direction is direction

    def hold_beats(self, offset: int) -> float:
        if self.kind is not ArrowKind.HOLD_START or self.release_offset is None:
            return 0.0
        return (self.release_offset - offset) / BEAT_UNITS


@dataclass(frozen=True)
class Division:
    arrows: Tuple[Arrow, ...]
    color: Color
    offset: int
    time: float = 0.0

    def is_jump(self) -> bool:
        stepped = [arrow for arrow in self.arrows if arrow.kind in (ArrowKind.TAP, ArrowKind.HOLD_START)]
        return len(stepped) == 2

    def is_shock(self) -> bool:
        return any(arrow.kind is ArrowKind.MINE for arrow in self.arrows)


@dataclass(frozen=True)
class TempoChange:
    offset: int
    bpm: float


@dataclass(frozen=True)
class Pause:
    offset: int
    seconds: float


@dataclass(frozen=True)
class Timeline:
    divisions: Tuple[Division, ...]
    tempo_changes: Tuple[TempoChange, ...]
    pauses: Tuple[Pause, ...] = ()

    def __len__(self) -> int:
        return len(self.divisions)

    def end_offset(self) -> int:
        """Last rhythmic position the chart occupies, hold releases included."""
        end = 0
        for division in self.divisions:
            end = max(end, division.offset)
            for arrow in division.arrows:
                if arrow.release_offset is not None:
                    end = max(end, arrow.release_offset)
        return end


@dataclass(frozen=True)
class GrooveRadar:
    stream: int
    voltage: int
    air: int
    freeze: int
    chaos: int


@dataclass(frozen=True)
class TempoDisplay:
    division: float
    bpm: float

    @classmethod
    def from_tempo_change(cls, tempo_change: TempoChange) -> "TempoDisplay":
        return cls(division=tempo_change.offset / MEASURE_UNITS, bpm=float(tempo_change.bpm))


@dataclass(frozen=True)
class PauseDisplay:
    division: float
    time: float

    @classmethod
    def from_pause(cls, pause: Pause) -> "PauseDisplay":
        return cls(division=pause.offset / MEASURE_UNITS, time=float(pause.seconds))


@dataclass(frozen=True)
class ChartInfo:
    chart_type: ChartType
    difficulty: Difficulty
    level: int
    max_combo: int
    groove_radar: GrooveRadar
