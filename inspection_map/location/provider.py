"""Current-location lookup behind a small provider interface."""

from __future__ import annotations

import asyncio
import math
from pathlib import Path
from typing import Protocol

from inspection_map.common.errors import LocationUnavailable, PermissionDenied
from inspection_map.common.fs import read_json
from inspection_map.common.models import Coordinate


class LocationProvider(Protocol):
    def get_current_location(self) -> Coordinate:
        ...


class StaticLocationProvider:
    def __init__(self, coordinate: Coordinate | None) -> None:
        self.coordinate = coordinate

    def get_current_location(self) -> Coordinate:
        if self.coordinate is None:
            raise LocationUnavailable("No location was supplied")
        return self.coordinate


def _safe_float(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None


class LastKnownLocationProvider:
    """Reads a last-known fix from a JSON file; the value may be stale."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def get_current_location(self) -> Coordinate:
        try:
            payload = read_json(self.path)
        except PermissionError as exc:
            raise PermissionDenied(f"Not allowed to read location file {self.path}") from exc
        except FileNotFoundError as exc:
            raise LocationUnavailable(f"Location file not found: {self.path}") from exc
        except (OSError, ValueError) as exc:
            raise LocationUnavailable(f"Location file unreadable: {self.path}") from exc

        if not isinstance(payload, dict):
            raise LocationUnavailable("No last known location recorded")

        lat = _safe_float(payload.get("latitude"))
        lon = _safe_float(payload.get("longitude"))
        if lat is None or lon is None or not (-90 <= lat <= 90 and -180 <= lon <= 180):
            raise LocationUnavailable("Last known location is not a valid coordinate")
        return Coordinate(latitude=lat, longitude=lon)


async def resolve_location_async(provider: LocationProvider) -> Coordinate:
    return await asyncio.to_thread(provider.get_current_location)
