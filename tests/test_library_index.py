from __future__ import annotations

from pathlib import Path

import library_index
import paths


def test_candidates_are_ordered_and_prefer_ssc(make_songs_dir) -> None:
    songs_dir = make_songs_dir(
        {
            "b": {"song.sm": "", "song.ssc": "", "extra.sm": "", "notes.txt": ""},
            "a": {"a.SM": ""},
        }
    )
    (songs_dir / "loose.sm").write_text("", encoding="utf-8")

    candidates = library_index.list_simfile_candidates(songs_dir)

    assert [(candidate.dir_name, candidate.simfile_path.name) for candidate in candidates] == [
        ("a", "a.SM"),
        ("b", "extra.sm"),
        ("b", "song.ssc"),
    ]


def test_extensions_filter(make_songs_dir) -> None:
    songs_dir = make_songs_dir({"b": {"song.sm": "", "other.ssc": ""}})

    candidates = library_index.list_simfile_candidates(songs_dir, extensions=(".sm",))

    assert [candidate.simfile_path.name for candidate in candidates] == ["song.sm"]


def test_missing_songs_dir_yields_nothing(tmp_path: Path) -> None:
    assert library_index.list_simfile_candidates(tmp_path / "nowhere") == []


def test_output_paths() -> None:
    output_dir = Path("out")

    assert paths.songs_index_path(output_dir) == Path("out/songs.json")
    assert paths.chart_output_path(output_dir, "My Song", "Challenge") == Path("out/My Song/Challenge.json")
