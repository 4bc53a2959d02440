"""Map presenters: place the camera and the inspection markers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, Sequence

from pyproj import Geod

from inspection_map.common.fs import write_csv, write_json
from inspection_map.common.models import Coordinate, MapView

WGS84 = Geod(ellps="WGS84")

MARKER_CSV_HEADERS = ["latitude", "longitude", "distance_m"]


class MapPresenter(Protocol):
    def render(self, view: MapView, markers: Sequence[Coordinate]) -> None:
        ...


def distance_m(origin: Coordinate, target: Coordinate) -> float:
    """Geodesic distance on the WGS84 ellipsoid, rounded to a tenth of a metre."""
    _fwd, _back, dist = WGS84.inv(origin.longitude, origin.latitude, target.longitude, target.latitude)
    return round(dist, 1)


def _point_feature(coordinate: Coordinate, properties: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": coordinate.to_lon_lat()},
        "properties": properties,
    }


def build_feature_collection(view: MapView, markers: Sequence[Coordinate]) -> dict[str, Any]:
    features = [_point_feature(view.center, {"role": "user_location"})]
    for index, marker in enumerate(markers):
        features.append(
            _point_feature(
                marker,
                {
                    "role": "inspection",
                    "index": index,
                    "distance_m": distance_m(view.center, marker),
                },
            )
        )
    return {
        "type": "FeatureCollection",
        "view": view.to_dict(),
        "features": features,
    }


class GeoJsonMapPresenter:
    def __init__(self, path: Path) -> None:
        self.path = path

    def render(self, view: MapView, markers: Sequence[Coordinate]) -> None:
        write_json(self.path, build_feature_collection(view, markers), sort_keys=False)


class CsvMarkerPresenter:
    def __init__(self, path: Path) -> None:
        self.path = path

    def render(self, view: MapView, markers: Sequence[Coordinate]) -> None:
        rows = (
            {
                "latitude": marker.latitude,
                "longitude": marker.longitude,
                "distance_m": distance_m(view.center, marker),
            }
            for marker in markers
        )
        write_csv(self.path, MARKER_CSV_HEADERS, rows)


class RecordingMapPresenter:
    def __init__(self) -> None:
        self.calls: list[tuple[MapView, tuple[Coordinate, ...]]] = []

    def render(self, view: MapView, markers: Sequence[Coordinate]) -> None:
        self.calls.append((view, tuple(markers)))

    @property
    def last(self) -> tuple[MapView, tuple[Coordinate, ...]] | None:
        return self.calls[-1] if self.calls else None
