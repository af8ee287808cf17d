"""
stepradar.py

Command line entrypoint.

Commands
- build [SONGS_DIR]  Score every dance-single chart under SONGS_DIR and write the JSON export.
- chart SIMFILE      Print the chart list (levels and groove radar) of one simfile.
- serve              Serve the JSON export over HTTP.
- config             Print the resolved configuration.

Settings come from config.py; command line flags win over the config file.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

import chart_engine
import config as config_module
import song_export
import web_server


logger = logging.getLogger(__name__)


def _build_argument_parser() -> argparse.ArgumentParser:
    argument_parser = argparse.ArgumentParser(prog="stepradar", description="StepMania chart timeline and groove radar export")
    argument_parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR (overrides config).")
    subparsers = argument_parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser("build", help="Export songs.json and per-chart JSON.")
    build_parser.add_argument("songs_dir", nargs="?", default=None, help="Directory with one subdirectory per song.")
    build_parser.add_argument("--output", default=None, help="Output directory.")
    build_parser.add_argument("--jobs", type=int, default=None, help="Worker processes.")
    build_parser.add_argument("--strict", action="store_true", help="Abort on the first invalid simfile.")
    build_parser.add_argument("--pretty", action="store_true", help="Indent JSON output.")

    chart_parser = subparsers.add_parser("chart", help="Print the charts of one simfile.")
    chart_parser.add_argument("simfile", help="Path to a .sm or .ssc file.")

    serve_parser = subparsers.add_parser("serve", help="Serve the export over HTTP.")
    serve_parser.add_argument("--host", default=None, help="Bind host.")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port.")
    serve_parser.add_argument("--output", default=None, help="Export directory to serve.")
    serve_parser.add_argument("--web-debug", action="store_true", help="Enable Flask debug mode.")

    subparsers.add_parser("config", help="Print the resolved configuration.")
    return argument_parser


def _configure_logging(level_text: str) -> None:
    logging.basicConfig(level=getattr(logging, level_text.upper(), logging.INFO), format="%(levelname)s: %(message)s")


def _print_json(payload: object) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _run_build(parsed_args: argparse.Namespace, app_config: config_module.AppConfig) -> int:
    songs_dir_text = parsed_args.songs_dir or app_config.export.songs_dir
    if not songs_dir_text:
        _print_json({"ok": False, "error": "No songs directory given (argument or export.songs_dir)."})
        return 2

    songs_dir = Path(songs_dir_text)
    if not songs_dir.is_dir():
        _print_json({"ok": False, "error": f"Songs directory does not exist: {songs_dir}"})
        return 2

    jobs = parsed_args.jobs if parsed_args.jobs is not None else app_config.export.jobs
    options = song_export.ExportOptions(
        output_dir=Path(parsed_args.output or app_config.export.output_dir),
        jobs=max(1, int(jobs)),
        strict=bool(parsed_args.strict or app_config.export.strict),
        pretty_json=bool(parsed_args.pretty or app_config.export.pretty_json),
        extensions=tuple(app_config.export.simfile_extensions),
    )

    try:
        summary = song_export.export_library(songs_dir, options)
    except song_export.ExportError as exception:
        _print_json({"ok": False, "error": str(exception)})
        return 2

    _print_json(
        {
            "ok": True,
            "songs": summary.song_count,
            "charts": summary.chart_count,
            "skipped": [str(path) for path, _reason in summary.skipped],
            "songs_index": str(summary.songs_index_path),
        }
    )
    return 0


def _run_chart(parsed_args: argparse.Namespace) -> int:
    try:
        loaded = chart_engine.ChartEngine().load_simfile_charts(Path(parsed_args.simfile))
    except chart_engine.ChartLoadError as exception:
        _print_json({"ok": False, "error": str(exception)})
        return 2

    _print_json(
        {
            "ok": True,
            "title": loaded.simfile.header.title,
            "charts": [song_export.chart_info_payload(chart.info) for chart in loaded.charts],
        }
    )
    return 0


def _run_serve(parsed_args: argparse.Namespace, app_config: config_module.AppConfig) -> int:
    server_config = web_server.WebServerConfig(
        host=str(parsed_args.host or app_config.web_server.host),
        port=int(parsed_args.port or app_config.web_server.port),
        output_dir=Path(parsed_args.output or app_config.export.output_dir).resolve(),
        debug=bool(parsed_args.web_debug),
    )
    web_server.run_server(server_config)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parsed_args = _build_argument_parser().parse_args(argv)

    try:
        app_config, config_path = config_module.get_config()
    except (OSError, ValueError) as exception:
        _print_json({"ok": False, "error": str(exception)})
        return 2

    _configure_logging(parsed_args.log_level or app_config.logging.level)
    logger.debug("Using config %s", config_path or "(defaults)")

    if parsed_args.command == "build":
        return _run_build(parsed_args, app_config)
    if parsed_args.command == "chart":
        return _run_chart(parsed_args)
    if parsed_args.command == "serve":
        return _run_serve(parsed_args, app_config)

    _print_json(
        {
            "ok": True,
            "config_path": str(config_path) if config_path is not None else None,
            "config": json.loads(config_module.to_json(app_config)),
        }
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
