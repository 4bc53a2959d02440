"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class InspectionRecord:
    risk: str
    latitude: str
    longitude: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def to_dict(self) -> dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}

    def to_lon_lat(self) -> list[float]:
        """GeoJSON position order."""
        return [self.longitude, self.latitude]


@dataclass(frozen=True)
class MapView:
    center: Coordinate
    zoom: float
    tilt: float = 0.0
    bearing: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "center": self.center.to_dict(),
            "zoom": self.zoom,
            "tilt": self.tilt,
            "bearing": self.bearing,
        }


@dataclass(frozen=True)
class PipelineStats:
    rows_in: int
    rows_truncated: int
    rows_excluded: int
    rows_dropped: int
    rows_out: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)
