# -*- coding: utf-8 -*-
########################
# library_index.py
########################
# Purpose:
# - Locate song directories and their simfile (.sm / .ssc) candidates under a songs root.
#
# Design notes:
# - Directory layout is an interface contract with song_export.py:
#   <songs_dir>/<dir_name>/<anything>.sm|.ssc
# - Keep ordering deterministic (directories and files sorted by name).
# - When a .ssc and a .sm share a stem, only the .ssc is used.
# - File system paths only. Nothing is read here.
#
########################
# Interfaces:
# Public dataclasses:
# - SimfileCandidate(dir_name: str, simfile_path: pathlib.Path)
#
# Public functions:
# - list_song_dirs(songs_dir: pathlib.Path) -> list[pathlib.Path]
# - list_simfiles(song_dir: pathlib.Path, *, extensions: Sequence[str] = (".sm", ".ssc")) -> list[pathlib.Path]
# - list_simfile_candidates(songs_dir: pathlib.Path, *, extensions: Sequence[str] = (".sm", ".ssc")) -> list[SimfileCandidate]
#
# Inputs:
# - songs_dir from config.py or the command line.
#
# Outputs:
# - SimfileCandidate list consumed by song_export.py.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence

import sm_store


@dataclass(frozen=True)
class SimfileCandidate:
    dir_name: str
    simfile_path: Path


def list_song_dirs(songs_dir: Path) -> List[Path]:
    directory_path = Path(songs_dir)
    if not directory_path.exists() or not directory_path.is_dir():
        return []
    return sorted([path for path in directory_path.iterdir() if path.is_dir()], key=lambda item: item.name)


def list_simfiles(song_dir: Path, *, extensions: Sequence[str] = sm_store.SUPPORTED_SUFFIXES) -> List[Path]:
    wanted = {str(extension).lower() for extension in extensions}
    by_stem: Dict[str, Path] = {}
    for path in sorted(Path(song_dir).iterdir(), key=lambda item: item.name):
        suffix = path.suffix.lower()
        if not path.is_file() or suffix not in wanted:
            continue
        existing = by_stem.get(path.stem)
        if existing is not None and existing.suffix.lower() == ".ssc":
            continue
        by_stem[path.stem] = path
    return sorted(by_stem.values(), key=lambda item: item.name)


def list_simfile_candidates(
    songs_dir: Path,
    *,
    extensions: Sequence[str] = sm_store.SUPPORTED_SUFFIXES,
) -> List[SimfileCandidate]:
    """Return deterministic candidate list: directories by name, then files by name."""
    candidates: List[SimfileCandidate] = []
    for song_dir in list_song_dirs(songs_dir):
        for simfile_path in list_simfiles(song_dir, extensions=extensions):
            candidates.append(SimfileCandidate(dir_name=song_dir.name, simfile_path=simfile_path))
    return candidates
