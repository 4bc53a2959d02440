"""Inspection dataset pipeline: fetch, parse, truncate, filter, project."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import Any, Iterable, Protocol, Sequence, TypeVar

from inspection_map.common.config_loader import PipelineConfig
from inspection_map.common.constants import (
    DEFAULT_EXCLUDED_RISKS,
    DEFAULT_RECORD_LIMIT,
    REQUIRED_RECORD_FIELDS,
)
from inspection_map.common.errors import CoordinateParseError, FetchError, ParseError
from inspection_map.common.logging import get_logger, log_event
from inspection_map.common.models import Coordinate, InspectionRecord, PipelineStats
from inspection_map.common.time_utils import elapsed_ms

T = TypeVar("T")


class JsonClient(Protocol):
    def get_json(self, url: str, **kwargs: Any) -> Any:
        ...


def _field_text(item: dict, key: str, index: int) -> str:
    if key not in item:
        raise ParseError(f"Record {index} is missing required field '{key}'")
    value = item[key]
    if isinstance(value, str):
        return value
    # Socrata occasionally emits coordinates unquoted.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise ParseError(f"Record {index} field '{key}' must be a string, got {type(value).__name__}")


def require_array(payload: Any) -> list:
    if not isinstance(payload, list):
        raise ParseError(f"Expected a JSON array, got {type(payload).__name__}")
    return payload


def parse_records(payload: Any) -> list[InspectionRecord]:
    records: list[InspectionRecord] = []
    for index, item in enumerate(require_array(payload)):
        if not isinstance(item, dict):
            raise ParseError(f"Record {index} is not a JSON object")
        risk, latitude, longitude = (_field_text(item, key, index) for key in REQUIRED_RECORD_FIELDS)
        records.append(InspectionRecord(risk=risk, latitude=latitude, longitude=longitude))
    return records


def truncate_records(records: Sequence[T], limit: int = DEFAULT_RECORD_LIMIT) -> list[T]:
    return list(records[:limit])


def filter_records(
    records: Iterable[InspectionRecord],
    excluded_risks: Iterable[str] = DEFAULT_EXCLUDED_RISKS,
) -> list[InspectionRecord]:
    """Keep records whose risk is not exactly one of ``excluded_risks``."""
    excluded = frozenset(excluded_risks)
    return [record for record in records if record.risk not in excluded]


def _parse_degrees(value: str, field_name: str) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise CoordinateParseError(f"{field_name} {value!r} is not numeric") from exc
    if not math.isfinite(parsed):
        raise CoordinateParseError(f"{field_name} {value!r} is not finite")
    return parsed


def to_coordinate(record: InspectionRecord) -> Coordinate:
    return Coordinate(
        latitude=_parse_degrees(record.latitude, "latitude"),
        longitude=_parse_degrees(record.longitude, "longitude"),
    )


def project_coordinates(
    records: Iterable[InspectionRecord],
    logger: logging.Logger | None = None,
) -> tuple[Coordinate, ...]:
    logger = logger or get_logger()
    coordinates: list[Coordinate] = []
    for record in records:
        try:
            coordinates.append(to_coordinate(record))
        except CoordinateParseError as exc:
            log_event(
                logger,
                f"dropped record: {exc}",
                level=logging.DEBUG,
                stage="project",
                event="RECORD_DROPPED",
                status="skipped",
                error_code=exc.error_code,
            )
    return tuple(coordinates)


def run_pipeline_on_payload(
    payload: Any,
    *,
    record_limit: int = DEFAULT_RECORD_LIMIT,
    excluded_risks: Iterable[str] = DEFAULT_EXCLUDED_RISKS,
    logger: logging.Logger | None = None,
) -> tuple[tuple[Coordinate, ...], PipelineStats]:
    rows = require_array(payload)
    # Elements past the limit are never inspected.
    truncated = parse_records(truncate_records(rows, record_limit))
    kept = filter_records(truncated, excluded_risks)
    coordinates = project_coordinates(kept, logger=logger)
    stats = PipelineStats(
        rows_in=len(rows),
        rows_truncated=len(rows) - len(truncated),
        rows_excluded=len(truncated) - len(kept),
        rows_dropped=len(kept) - len(coordinates),
        rows_out=len(coordinates),
    )
    return coordinates, stats


def fetch_filtered_coordinates(
    endpoint: str,
    *,
    client: JsonClient,
    record_limit: int = DEFAULT_RECORD_LIMIT,
    excluded_risks: Iterable[str] = DEFAULT_EXCLUDED_RISKS,
) -> tuple[Coordinate, ...]:
    payload = client.get_json(endpoint)
    coordinates, _stats = run_pipeline_on_payload(
        payload,
        record_limit=record_limit,
        excluded_risks=excluded_risks,
    )
    return coordinates


async def fetch_filtered_coordinates_async(
    endpoint: str,
    *,
    client: JsonClient,
    record_limit: int = DEFAULT_RECORD_LIMIT,
    excluded_risks: Iterable[str] = DEFAULT_EXCLUDED_RISKS,
) -> tuple[Coordinate, ...]:
    return await asyncio.to_thread(
        fetch_filtered_coordinates,
        endpoint,
        client=client,
        record_limit=record_limit,
        excluded_risks=tuple(excluded_risks),
    )


class InspectionPipeline:
    """Pipeline bound to one endpoint, one config and one transport.

    Results are returned on whichever thread or event loop called ``run`` or
    awaited ``run_async``; callers marshal them to their own UI context.
    """

    def __init__(
        self,
        endpoint: str,
        client: JsonClient,
        config: PipelineConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.client = client
        self.config = config or PipelineConfig()
        self.logger = logger or get_logger()

    def run(self) -> tuple[tuple[Coordinate, ...], PipelineStats]:
        started_at = time.monotonic()
        log_event(self.logger, "fetch start", stage="fetch", event="FETCH_START", status="ok", endpoint=self.endpoint)
        try:
            payload = self.client.get_json(self.endpoint)
            coordinates, stats = run_pipeline_on_payload(
                payload,
                record_limit=self.config.record_limit,
                excluded_risks=self.config.excluded_risks,
                logger=self.logger,
            )
        except FetchError as exc:
            log_event(
                self.logger,
                f"fetch failed: {exc}",
                level=logging.ERROR,
                stage="fetch",
                event="FETCH_FAIL",
                status="error",
                error_code=exc.error_code,
                endpoint=self.endpoint,
                duration_ms=elapsed_ms(started_at),
            )
            raise

        log_event(
            self.logger,
            "fetch end",
            stage="fetch",
            event="FETCH_END",
            status="ok",
            endpoint=self.endpoint,
            rows_in=stats.rows_in,
            rows_out=stats.rows_out,
            duration_ms=elapsed_ms(started_at),
        )
        return coordinates, stats

    async def run_async(self) -> tuple[tuple[Coordinate, ...], PipelineStats]:
        return await asyncio.to_thread(self.run)
