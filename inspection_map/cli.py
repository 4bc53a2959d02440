"""CLI entrypoint for the food inspection map."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import TextIO

from inspection_map.app import STATUS_FETCH_FAILED, STATUS_OK, run_inspection_map
from inspection_map.common.config_loader import AppConfig, load_config
from inspection_map.common.constants import (
    COMMANDS,
    EXIT_HARD_FAIL,
    EXIT_LOCATION_FAIL,
    EXIT_SUCCESS,
    FETCH_FAILED_MESSAGE,
)
from inspection_map.common.errors import FetchError, InspectionMapError
from inspection_map.common.fs import write_csv, write_json
from inspection_map.common.http import HttpClient
from inspection_map.common.ids import generate_run_id
from inspection_map.common.logging import build_logger, log_event
from inspection_map.common.models import Coordinate
from inspection_map.location.provider import LastKnownLocationProvider, LocationProvider, StaticLocationProvider
from inspection_map.pipeline.inspections import InspectionPipeline, JsonClient
from inspection_map.pipeline.reports import write_run_report
from inspection_map.presentation.map_presenter import CsvMarkerPresenter, GeoJsonMapPresenter, MapPresenter
from inspection_map.presentation.notify import Notifier, StderrNotifier


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("--config", default=None)
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--output", default=None)
    parser.add_argument("--format", default=None, choices=["json", "csv", "geojson"])
    parser.add_argument("--lat", type=float, default=None)
    parser.add_argument("--lon", type=float, default=None)
    parser.add_argument("--location-file", default=None)
    parser.add_argument("--report", default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    args = parser.parse_args(argv)

    if (args.lat is None) != (args.lon is None):
        parser.error("--lat and --lon must be given together")
    if args.lat is not None and args.location_file is not None:
        parser.error("--location-file cannot be combined with --lat/--lon")
    if args.format is None:
        args.format = "json" if args.command == "fetch" else "geojson"
    if args.command == "fetch" and args.format == "geojson":
        parser.error("fetch supports --format json or csv")
    if args.command == "map" and args.format == "json":
        parser.error("map supports --format geojson or csv")
    if args.format == "csv" and args.output is None:
        parser.error("--format csv requires --output")
    return args


def resolve_config(args: argparse.Namespace) -> AppConfig:
    if args.config is None:
        return AppConfig.default()
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
    return load_config(Path(args.config), overlay_config_dir=overlay_config_dir)


def build_location_provider(args: argparse.Namespace) -> LocationProvider:
    if args.location_file is not None:
        return LastKnownLocationProvider(Path(args.location_file))
    if args.lat is not None:
        return StaticLocationProvider(Coordinate(latitude=args.lat, longitude=args.lon))
    return StaticLocationProvider(None)


def build_presenter(args: argparse.Namespace) -> MapPresenter:
    if args.format == "csv":
        return CsvMarkerPresenter(Path(args.output))
    return GeoJsonMapPresenter(Path(args.output or "inspection_map.geojson"))


def _write_coordinates(args: argparse.Namespace, coordinates: tuple[Coordinate, ...], stdout: TextIO) -> None:
    rows = [c.to_dict() for c in coordinates]
    if args.format == "csv":
        write_csv(Path(args.output), ["latitude", "longitude"], rows)
    elif args.output is not None:
        write_json(Path(args.output), rows)
    else:
        stdout.write(json.dumps(rows, indent=2) + "\n")


def run_fetch(
    args: argparse.Namespace,
    config: AppConfig,
    *,
    run_id: str,
    logger,
    notifier: Notifier,
    http_client: JsonClient | None,
    stdout: TextIO,
) -> int:
    owns_client = http_client is None
    client = http_client or HttpClient(timeout=config.timeout, retry=config.retry)
    try:
        pipeline = InspectionPipeline(config.source.endpoint, client, config.pipeline, logger=logger)
        coordinates, stats = pipeline.run()
    except FetchError as exc:
        notifier.notify(FETCH_FAILED_MESSAGE)
        if args.report:
            write_run_report(
                Path(args.report),
                run_id=run_id,
                command="fetch",
                status=STATUS_FETCH_FAILED,
                endpoint=config.source.endpoint,
                stats=None,
                error_code=exc.error_code,
            )
        return EXIT_HARD_FAIL
    finally:
        if owns_client:
            client.close()

    _write_coordinates(args, coordinates, stdout)
    if args.report:
        write_run_report(
            Path(args.report),
            run_id=run_id,
            command="fetch",
            status=STATUS_OK,
            endpoint=config.source.endpoint,
            stats=stats,
        )
    return EXIT_SUCCESS


def run_map(
    args: argparse.Namespace,
    config: AppConfig,
    *,
    run_id: str,
    logger,
    notifier: Notifier,
    http_client: JsonClient | None,
) -> int:
    outcome = run_inspection_map(
        config,
        location_provider=build_location_provider(args),
        presenter=build_presenter(args),
        notifier=notifier,
        http_client=http_client,
        logger=logger,
    )
    if args.report:
        write_run_report(
            Path(args.report),
            run_id=run_id,
            command="map",
            status=outcome.status,
            endpoint=config.source.endpoint,
            stats=outcome.stats,
            error_code=outcome.error_code,
        )
    if outcome.ok:
        return EXIT_SUCCESS
    if outcome.status == STATUS_FETCH_FAILED:
        return EXIT_HARD_FAIL
    return EXIT_LOCATION_FAIL


def run_command(
    args: argparse.Namespace,
    *,
    http_client: JsonClient | None = None,
    notifier: Notifier | None = None,
    stdout: TextIO | None = None,
) -> int:
    run_id = args.run_id or generate_run_id()
    log_dir = Path(args.log_dir) if args.log_dir else None
    logger = build_logger(run_id, log_dir=log_dir, level=args.log_level)
    notifier = notifier or StderrNotifier()

    config = resolve_config(args)
    log_event(logger, "command start", run_id=run_id, stage=args.command, event="COMMAND_START", status="ok")

    if args.command == "fetch":
        exit_code = run_fetch(
            args,
            config,
            run_id=run_id,
            logger=logger,
            notifier=notifier,
            http_client=http_client,
            stdout=stdout or sys.stdout,
        )
    else:
        exit_code = run_map(args, config, run_id=run_id, logger=logger, notifier=notifier, http_client=http_client)

    log_event(
        logger,
        "command end",
        run_id=run_id,
        stage=args.command,
        event="COMMAND_END",
        status="ok" if exit_code == EXIT_SUCCESS else "error",
    )
    return exit_code


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except InspectionMapError as exc:
        sys.stderr.write(f"{exc.error_code}: {exc}\n")
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
