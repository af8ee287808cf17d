"""
config.py

Typed configuration loading and validation for stepradar.

Behaviour
- At most one UTF-8 JSON file is read; nothing is written or created.
- Values are validated by pydantic models with built-in defaults.
- STEPRADAR_* environment variables override individual file values.

Config file location
- If STEPRADAR_CONFIG_PATH is set, that file is used.
- Otherwise stepradar searches these paths in order and uses the first one that exists:
  1) ./stepradar_config.json (current working directory)
  2) <user config dir>/stepradar/stepradar_config.json
  3) <user config dir>/stepradar/config.json
- If none exists, the built-in defaults are used.

Example config file (stepradar_config.json)
{
  "export": {
    "songs_dir": "/path/to/StepMania/Songs/MyPack",
    "output_dir": "output",
    "jobs": 4,
    "strict": false,
    "pretty_json": false,
    "simfile_extensions": [".sm", ".ssc"]
  },
  "web_server": {
    "host": "127.0.0.1",
    "port": 5177
  },
  "logging": {
    "level": "INFO"
  }
}
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator

import sm_store


class ExportConfig(BaseModel):
    songs_dir: Optional[str] = Field(default=None, description="Directory holding one subdirectory per song.")
    output_dir: str = Field(default="output", description="Directory receiving songs.json and per-chart JSON.")
    jobs: int = Field(default=1, ge=1, description="Worker processes for the export. 1 runs serially.")
    strict: bool = Field(default=False, description="Abort the export on the first invalid simfile.")
    pretty_json: bool = Field(default=False, description="Indent exported JSON.")
    simfile_extensions: List[str] = Field(
        default_factory=lambda: list(sm_store.SUPPORTED_SUFFIXES),
        description="Simfile extensions to export, subset of .sm and .ssc.",
    )

    @field_validator("songs_dir")
    @classmethod
    def normalize_songs_dir(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None

    @field_validator("simfile_extensions")
    @classmethod
    def validate_simfile_extensions(cls, value: List[str]) -> List[str]:
        normalized: List[str] = []
        for item in value:
            extension = str(item or "").strip().lower()
            if extension and not extension.startswith("."):
                extension = "." + extension
            if extension not in sm_store.SUPPORTED_SUFFIXES:
                raise ValueError(f"simfile_extensions entries must be one of: {', '.join(sm_store.SUPPORTED_SUFFIXES)}")
            if extension not in normalized:
                normalized.append(extension)
        if not normalized:
            raise ValueError("simfile_extensions must not be empty")
        return normalized


class WebServerConfig(BaseModel):
    host: str = Field(default="127.0.0.1", description="Bind address for the export web server.")
    port: int = Field(default=5177, ge=1, le=65535, description="Port for the export web server.")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="DEBUG, INFO, WARNING or ERROR")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        normalized = (value or "").strip().upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if normalized not in allowed:
            raise ValueError("level must be one of: DEBUG, INFO, WARNING, ERROR")
        return normalized


class AppConfig(BaseModel):
    export: ExportConfig = Field(default_factory=ExportConfig)
    web_server: WebServerConfig = Field(default_factory=WebServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("stepradar", "stepradar"))
    return [
        Path.cwd() / "stepradar_config.json",
        config_directory / "stepradar_config.json",
        config_directory / "config.json",
    ]


def _resolve_config_path() -> Optional[Path]:
    explicit_path_text = os.environ.get("STEPRADAR_CONFIG_PATH", "").strip()
    if explicit_path_text:
        return Path(explicit_path_text)

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path
    return None


def _read_json_file_utf8(config_path: Path) -> Dict[str, Any]:
    try:
        parsed = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file is not valid JSON: {config_path}. Error: {exception}") from exception

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file root must be a JSON object: {config_path}")
    return parsed


_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off"})

# (environment variable, config section, key, kind)
_ENVIRONMENT_OVERRIDES = (
    ("STEPRADAR_SONGS_DIR", "export", "songs_dir", "str"),
    ("STEPRADAR_OUTPUT_DIR", "export", "output_dir", "str"),
    ("STEPRADAR_JOBS", "export", "jobs", "int"),
    ("STEPRADAR_STRICT", "export", "strict", "bool"),
    ("STEPRADAR_WEB_HOST", "web_server", "host", "str"),
    ("STEPRADAR_WEB_PORT", "web_server", "port", "int"),
    ("STEPRADAR_LOG_LEVEL", "logging", "level", "str"),
)


def _parse_environment_value(value_text: str, kind: str) -> Optional[Any]:
    if kind == "int":
        try:
            return int(value_text)
        except ValueError:
            return None
    if kind == "bool":
        lowered = value_text.lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        return None
    return value_text


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay STEPRADAR_* variables on the file contents. Unparseable values are ignored."""
    updated_config = dict(config_dict)
    for env_name, section_name, key_name, kind in _ENVIRONMENT_OVERRIDES:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            continue
        value = _parse_environment_value(value_text, kind)
        if value is None:
            continue
        section = updated_config.get(section_name)
        section = dict(section) if isinstance(section, dict) else {}
        section[key_name] = value
        updated_config[section_name] = section
    return updated_config


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Optional[Path]]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    json_dict = _read_json_file_utf8(resolved_path) if resolved_path is not None else {}
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AppConfig.model_validate(json_dict)
    except ValidationError as exception:
        source_text = str(resolved_path) if resolved_path is not None else "built-in defaults"
        raise ValueError(f"Config validation failed for {source_text}:\n{exception}") from exception

    return config, resolved_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[AppConfig, Optional[Path]]:
    return load_config()


def to_json(config: AppConfig) -> str:
    return json.dumps(config.model_dump(), ensure_ascii=False, indent=2)
