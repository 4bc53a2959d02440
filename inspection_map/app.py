"""End-to-end run: location, inspection pipeline, map presentation."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from inspection_map.common.config_loader import AppConfig
from inspection_map.common.constants import (
    FETCH_FAILED_MESSAGE,
    LOCATION_UNAVAILABLE_MESSAGE,
    PERMISSION_DENIED_MESSAGE,
)
from inspection_map.common.errors import FetchError, LocationError, PermissionDenied
from inspection_map.common.http import HttpClient
from inspection_map.common.logging import get_logger, log_event
from inspection_map.common.models import Coordinate, MapView, PipelineStats
from inspection_map.location.provider import LocationProvider, resolve_location_async
from inspection_map.pipeline.inspections import InspectionPipeline, JsonClient
from inspection_map.presentation.map_presenter import MapPresenter
from inspection_map.presentation.notify import Notifier

STATUS_OK = "ok"
STATUS_LOCATION_DENIED = "location_denied"
STATUS_LOCATION_UNAVAILABLE = "location_unavailable"
STATUS_FETCH_FAILED = "fetch_failed"


@dataclass(frozen=True)
class RunOutcome:
    status: str
    center: Coordinate | None = None
    coordinates: tuple[Coordinate, ...] | None = None
    stats: PipelineStats | None = None
    error_code: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "center": self.center.to_dict() if self.center else None,
            "coordinates": [c.to_dict() for c in self.coordinates] if self.coordinates is not None else None,
            "stats": self.stats.to_dict() if self.stats else None,
            "error_code": self.error_code,
        }


def _location_failure(exc: LocationError, notifier: Notifier, logger: logging.Logger) -> RunOutcome:
    if isinstance(exc, PermissionDenied):
        status, message = STATUS_LOCATION_DENIED, PERMISSION_DENIED_MESSAGE
    else:
        status, message = STATUS_LOCATION_UNAVAILABLE, LOCATION_UNAVAILABLE_MESSAGE
    log_event(
        logger,
        f"location failed: {exc}",
        level=logging.WARNING,
        stage="location",
        event="LOCATION_FAIL",
        status="error",
        error_code=exc.error_code,
    )
    notifier.notify(message)
    return RunOutcome(status=status, error_code=exc.error_code)


async def run_inspection_map_async(
    config: AppConfig,
    *,
    location_provider: LocationProvider,
    presenter: MapPresenter,
    notifier: Notifier,
    http_client: JsonClient | None = None,
    logger: logging.Logger | None = None,
) -> RunOutcome:
    logger = logger or get_logger()

    try:
        center = await resolve_location_async(location_provider)
    except LocationError as exc:
        return _location_failure(exc, notifier, logger)
    log_event(logger, "location resolved", stage="location", event="LOCATION_RESOLVED", status="ok")

    owns_client = http_client is None
    client = http_client or HttpClient(timeout=config.timeout, retry=config.retry)
    try:
        pipeline = InspectionPipeline(config.source.endpoint, client, config.pipeline, logger=logger)
        coordinates, stats = await pipeline.run_async()
    except FetchError as exc:
        notifier.notify(FETCH_FAILED_MESSAGE)
        return RunOutcome(status=STATUS_FETCH_FAILED, center=center, error_code=exc.error_code)
    finally:
        if owns_client:
            client.close()

    view = MapView(center=center, zoom=config.map.zoom, tilt=config.map.tilt, bearing=config.map.bearing)
    presenter.render(view, coordinates)
    log_event(logger, "map rendered", stage="render", event="RENDER_END", status="ok", rows_out=len(coordinates))
    return RunOutcome(status=STATUS_OK, center=center, coordinates=coordinates, stats=stats)


def run_inspection_map(
    config: AppConfig,
    *,
    location_provider: LocationProvider,
    presenter: MapPresenter,
    notifier: Notifier,
    http_client: JsonClient | None = None,
    logger: logging.Logger | None = None,
) -> RunOutcome:
    return asyncio.run(
        run_inspection_map_async(
            config,
            location_provider=location_provider,
            presenter=presenter,
            notifier=notifier,
            http_client=http_client,
            logger=logger,
        )
    )
