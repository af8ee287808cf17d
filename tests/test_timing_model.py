from __future__ import annotations

import pytest

from chart_models import BEAT_UNITS, MEASURE_UNITS, Pause, TempoChange, TimingPreconditionError
import timing_model


CONSTANT = [TempoChange(offset=0, bpm=120.0)]
CHANGING = [TempoChange(offset=0, bpm=120.0), TempoChange(offset=MEASURE_UNITS, bpm=240.0)]


def test_start_of_chart_is_time_zero() -> None:
    assert timing_model.to_seconds(0, CONSTANT) == 0.0
    assert timing_model.to_seconds(0, CHANGING, [Pause(offset=0, seconds=3.0)]) == 0.0


@pytest.mark.parametrize("bpm", [60.0, 120.0, 150.0, 173.5])
def test_one_beat_lasts_sixty_over_bpm(bpm: float) -> None:
    seconds = timing_model.to_seconds(BEAT_UNITS, [TempoChange(offset=0, bpm=bpm)])

    assert seconds == pytest.approx(60.0 / bpm)


def test_tempo_changes_are_integrated_per_segment() -> None:
    assert timing_model.to_seconds(MEASURE_UNITS, CHANGING) == pytest.approx(2.0)
    assert timing_model.to_seconds(2 * MEASURE_UNITS, CHANGING) == pytest.approx(3.0)


def test_final_tempo_extends_past_last_breakpoint() -> None:
    assert timing_model.to_seconds(10 * MEASURE_UNITS, CHANGING) == pytest.approx(2.0 + 9 * 1.0)


def test_pause_counts_only_strictly_after_its_offset() -> None:
    pauses = [Pause(offset=96, seconds=1.5)]

    assert timing_model.to_seconds(96, CHANGING, pauses) == pytest.approx(1.0)
    assert timing_model.to_seconds(97, CHANGING, pauses) == pytest.approx(97 / BEAT_UNITS * 0.5 + 1.5)


def test_to_seconds_is_monotonic() -> None:
    tempo_changes = [
        TempoChange(offset=0, bpm=150.0),
        TempoChange(offset=200, bpm=75.0),
        TempoChange(offset=500, bpm=300.0),
    ]
    pauses = [Pause(offset=100, seconds=0.4), Pause(offset=500, seconds=1.0)]

    times = [timing_model.to_seconds(offset, tempo_changes, pauses) for offset in range(0, 1200, 7)]

    assert all(later >= earlier for earlier, later in zip(times, times[1:]))


def test_empty_tempo_list_is_a_precondition_error() -> None:
    with pytest.raises(TimingPreconditionError):
        timing_model.to_seconds(48, [])
    with pytest.raises(TimingPreconditionError):
        timing_model.beats_between(0, 48, [])


def test_tempo_at_uses_change_at_exact_offset() -> None:
    assert timing_model.tempo_at(0, CHANGING) == 120.0
    assert timing_model.tempo_at(MEASURE_UNITS - 1, CHANGING) == 120.0
    assert timing_model.tempo_at(MEASURE_UNITS, CHANGING) == 240.0


def test_beats_between_ignores_pauses_and_clips_segments() -> None:
    assert timing_model.beats_between(0, 2 * MEASURE_UNITS, CHANGING) == pytest.approx(8.0)
    assert timing_model.beats_between(96, MEASURE_UNITS + 48, CHANGING) == pytest.approx(3.0)

    late_change = [TempoChange(offset=0, bpm=120.0), TempoChange(offset=1000, bpm=60.0)]
    assert timing_model.beats_between(0, MEASURE_UNITS, late_change) == pytest.approx(4.0)
    assert timing_model.beats_between(MEASURE_UNITS, MEASURE_UNITS, late_change) == 0.0
