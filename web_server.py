# -*- coding: utf-8 -*-
from __future__ import annotations

########################
# web_server.py
########################
# Purpose:
# - Local Flask web server for a chart viewer.
# - Serves the exported library (songs.json and per-chart JSON) through /api endpoints
#   and any other exported file as static content.
#
# Design notes:
# - Read-only. The export is produced by song_export.py; this module never writes.
# - Every path is resolved inside output_dir; traversal outside it is a 404.
# - Error payloads are {"ok": false, "error": ...}.
#
########################
# Interfaces:
# Public dataclasses:
# - WebServerConfig(host: str, port: int, output_dir: pathlib.Path, debug: bool)
#
# Public functions:
# - create_flask_app(config: WebServerConfig) -> flask.Flask
# - run_server(config: WebServerConfig) -> None
#
# Inputs:
# - HTTP requests:
#   - /api/status (GET)
#   - /api/songs (GET)
#   - /api/charts/<dir_name>/<difficulty> (GET)
#   - /<path> (GET) static files from output_dir
#
# Outputs:
# - JSON responses and static file responses.
#
########################

from dataclasses import dataclass
import json
import logging
import mimetypes
import os
from pathlib import Path
from typing import Any, Optional

from flask import Flask, Response, jsonify, make_response, request, send_file

from chart_models import Difficulty
import paths


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WebServerConfig:
    host: str
    port: int
    output_dir: Path
    debug: bool = False


def _is_within_directory(base_dir: Path, candidate_path: Path) -> bool:
    try:
        base_resolved = base_dir.resolve()
        candidate_resolved = candidate_path.resolve()
    except OSError:
        return False
    return base_resolved == candidate_resolved or str(candidate_resolved).startswith(str(base_resolved) + os.sep)


def _guess_mime_type(file_path: Path) -> str:
    guessed, _encoding = mimetypes.guess_type(str(file_path))
    if guessed:
        return guessed
    return "application/octet-stream"


def _read_json(file_path: Path) -> Optional[Any]:
    try:
        return json.loads(file_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None


def create_flask_app(config: WebServerConfig) -> Flask:
    flask_app = Flask(__name__, static_folder=None)
    output_dir = Path(config.output_dir)
    flask_app.extensions["stepradar_output_dir"] = output_dir

    @flask_app.after_request
    def add_no_cache_headers(response: Response) -> Response:
        if request.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store"
        return response

    def not_found_response(error_text: str = "Not found") -> Response:
        return jsonify({"ok": False, "error": error_text}), 404

    def resolve_inside_output(relative_path: str) -> Optional[Path]:
        candidate_path = (output_dir / relative_path).resolve()
        if not _is_within_directory(output_dir, candidate_path):
            return None
        if not candidate_path.exists() or not candidate_path.is_file():
            return None
        return candidate_path

    # API

    @flask_app.get("/api/status")
    def api_status() -> Response:
        songs = _read_json(paths.songs_index_path(output_dir))
        return jsonify(
            {
                "ok": True,
                "output_dir": str(output_dir),
                "song_count": len(songs) if isinstance(songs, list) else 0,
            }
        )

    @flask_app.get("/api/songs")
    def api_songs() -> Response:
        songs = _read_json(paths.songs_index_path(output_dir))
        if songs is None:
            return not_found_response("No export found. Run `stepradar build` first.")
        return jsonify({"ok": True, "songs": songs})

    @flask_app.get("/api/charts/<dir_name>/<difficulty>")
    def api_chart(dir_name: str, difficulty: str) -> Response:
        try:
            difficulty_label = Difficulty.from_label(difficulty).value
        except ValueError as exception:
            return not_found_response(str(exception))

        chart_path = paths.chart_output_path(output_dir, dir_name, difficulty_label)
        if not _is_within_directory(output_dir, chart_path):
            return not_found_response()
        chart = _read_json(chart_path)
        if chart is None:
            return not_found_response(f"No {difficulty_label} chart for {dir_name!r}")
        return jsonify({"ok": True, "chart": chart})

    # Static files fallback

    @flask_app.get("/<path:requested_path>")
    def route_static_files(requested_path: str) -> Response:
        file_path = resolve_inside_output(requested_path)
        if file_path is None:
            return not_found_response()
        return make_response(send_file(file_path, mimetype=_guess_mime_type(file_path)))

    return flask_app


def run_server(config: WebServerConfig) -> None:
    flask_app = create_flask_app(config)
    logger.info("Serving %s on http://%s:%d", config.output_dir, config.host, config.port)
    flask_app.run(host=config.host, port=config.port, debug=config.debug, use_reloader=False)
