from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict

import pytest

import config as config_module


SAMPLE_SM_TEXT = """\
#TITLE:Sample Song;
#MUSIC:sample.ogg;
#BANNER:sample.png;
#OFFSET:-0.050;
#BPMS:0.000=120.000,4.000=240.000;
#STOPS:2.000=0.500;
// comment line
#NOTES:
     dance-single:
     :
     Challenge:
     9:
     0.5,0.5,0.5,0.5,0.5:
1000
0100
0010
0001
,
2000
0000
3000
0000
,
1100
0000
M000
0000
;
#NOTES:
     dance-double:
     :
     Hard:
     8:
     0,0,0,0,0:
10000000
00000000
00000000
00000000
;
#NOTES:
     dance-single:
     :
     Easy:
     3:
     0,0,0,0,0:
1000
0000
0000
0000
;
"""

SAMPLE_SSC_TEXT = """\
#VERSION:0.83;
#TITLE:Ssc Song;
#MUSIC:ssc.ogg;
#BPMS:0.000=150.000;
#DISPLAYBPM:*;
#NOTEDATA:;
#STEPSTYPE:dance-single;
#DIFFICULTY:Hard;
#METER:7;
#BPMS:0.000=100.000,4.000=200.000;
#NOTES:
1000
0000
0000
0000
,
0001
;
#NOTEDATA:;
#STEPSTYPE:dance-single;
#DIFFICULTY:Medium;
#METER:5;
#NOTES:
1000
;
"""

BROKEN_HOLD_SM_TEXT = """\
#TITLE:Broken;
#BPMS:0.000=120.000;
#NOTES:
     dance-single:
     :
     Hard:
     8:
     0,0,0,0,0:
2000
0000
0300
0000
;
"""

_ENV_NAMES = (
    "STEPRADAR_CONFIG_PATH",
    "STEPRADAR_SONGS_DIR",
    "STEPRADAR_OUTPUT_DIR",
    "STEPRADAR_JOBS",
    "STEPRADAR_STRICT",
    "STEPRADAR_WEB_HOST",
    "STEPRADAR_WEB_PORT",
    "STEPRADAR_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep user config files and STEPRADAR_* variables out of every test."""
    for env_name in _ENV_NAMES:
        monkeypatch.delenv(env_name, raising=False)
    missing_path = tmp_path / "no_config_here.json"
    monkeypatch.setattr(config_module, "_default_config_candidates", lambda: [missing_path])
    config_module.get_config.cache_clear()


@pytest.fixture
def sample_sm_text() -> str:
    return SAMPLE_SM_TEXT


@pytest.fixture
def sample_ssc_text() -> str:
    return SAMPLE_SSC_TEXT


@pytest.fixture
def broken_hold_sm_text() -> str:
    return BROKEN_HOLD_SM_TEXT


@pytest.fixture
def make_songs_dir(tmp_path: Path) -> Callable[[Dict[str, Dict[str, str]]], Path]:
    """Build <tmp>/songs/<dir_name>/<file_name> from {dir_name: {file_name: text}}."""

    def build(layout: Dict[str, Dict[str, str]]) -> Path:
        songs_dir = tmp_path / "songs"
        for dir_name, files in layout.items():
            song_dir = songs_dir / dir_name
            song_dir.mkdir(parents=True, exist_ok=True)
            for file_name, text in files.items():
                (song_dir / file_name).write_text(text, encoding="utf-8")
        songs_dir.mkdir(parents=True, exist_ok=True)
        return songs_dir

    return build
