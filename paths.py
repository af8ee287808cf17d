# -*- coding: utf-8 -*-
########################
# paths.py
########################
# Purpose:
# - Central filesystem path helpers for the export layout.
# - Defines where the song list and per-chart JSON files live under an output directory.
#
# Design notes:
# - Keep path derivation consistent across song_export.py and web_server.py.
# - Return pathlib.Path only. Directories are not created here.
#
########################
# Interfaces:
# Public constants:
# - SONGS_INDEX_FILE_NAME = "songs.json"
#
# Public functions:
# - songs_index_path(output_dir: pathlib.Path) -> pathlib.Path
# - song_output_dir(output_dir: pathlib.Path, dir_name: str) -> pathlib.Path
# - chart_output_path(output_dir: pathlib.Path, dir_name: str, file_stem: str) -> pathlib.Path
#
# Inputs:
# - output_dir from config.py or the command line.
#
# Outputs:
# - Paths used by song_export.py and web_server.py.
#
########################

from __future__ import annotations

from pathlib import Path


SONGS_INDEX_FILE_NAME = "songs.json"


def songs_index_path(output_dir: Path) -> Path:
    return Path(output_dir) / SONGS_INDEX_FILE_NAME


def song_output_dir(output_dir: Path, dir_name: str) -> Path:
    return Path(output_dir) / str(dir_name)


def chart_output_path(output_dir: Path, dir_name: str, file_stem: str) -> Path:
    """Return <output_dir>/<dir_name>/<file_stem>.json, e.g. output/MySong/Challenge.json."""
    return song_output_dir(output_dir, dir_name) / f"{file_stem}.json"
