"""
Spatial primitives and geodesic helpers.

Coordinates, map regions (center + span, the way a map camera describes what
it shows), and bounding rectangles for route geometry. Distances use the
WGS84 ellipsoid through pyproj.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import pyproj
from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)

GEOD = pyproj.Geod(ellps="WGS84")


def _lon_offset(origin: float, lon: float) -> float:
    """Signed east offset from origin to lon, in [-180, 180)."""
    return ((lon - origin + 540.0) % 360.0) - 180.0


class Coordinate(BaseModel):
    """A WGS84 latitude/longitude pair."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)

    def as_lon_lat(self) -> tuple[float, float]:
        return (self.lon, self.lat)


class MapRect(BaseModel):
    """Axis-aligned bounding rectangle in degrees."""

    model_config = ConfigDict(frozen=True)

    west: float
    south: float
    east: float
    north: float

    @property
    def center(self) -> Coordinate:
        return Coordinate(
            lat=(self.south + self.north) / 2,
            lon=(self.west + self.east) / 2,
        )


class Region(BaseModel):
    """
    A visible map region: a center plus latitude/longitude spans in degrees.

    Spans cover the full height/width of the region, so the region extends
    half a span to each side of the center.
    """

    model_config = ConfigDict(frozen=True)

    center: Coordinate
    latitude_delta: float = Field(gt=0.0, le=180.0)
    longitude_delta: float = Field(gt=0.0, le=360.0)

    @classmethod
    def from_meters(
        cls,
        center: Coordinate,
        latitudinal_meters: float,
        longitudinal_meters: float,
    ) -> Region:
        """Build a region spanning the given north-south / east-west distances."""
        half_lat_m = latitudinal_meters / 2
        north_lon, north, _ = GEOD.fwd(center.lon, center.lat, 0.0, half_lat_m)
        south_lon, south, _ = GEOD.fwd(center.lon, center.lat, 180.0, half_lat_m)
        east, _, _ = GEOD.fwd(center.lon, center.lat, 90.0, longitudinal_meters / 2)

        # A meridian walk past a pole comes back down on the opposite meridian
        if abs(_lon_offset(center.lon, north_lon)) > 90.0:
            north = 180.0 - north
        if abs(_lon_offset(center.lon, south_lon)) > 90.0:
            south = -180.0 - south
        north = min(90.0, max(north, center.lat))
        south = max(-90.0, min(south, center.lat))

        half_lon = abs(_lon_offset(center.lon, east))
        return cls(
            center=center,
            latitude_delta=min(180.0, north - south) or 180.0,
            longitude_delta=min(360.0, 2 * half_lon) or 360.0,
        )

    @property
    def bounds(self) -> MapRect:
        """
        The region as a west/south/east/north box.

        Edges past the poles or the antimeridian are clipped, so a region
        straddling the antimeridian keeps only the part on its center's side.
        """
        half_lat = self.latitude_delta / 2
        half_lon = self.longitude_delta / 2
        return MapRect(
            west=max(-180.0, self.center.lon - half_lon),
            south=max(-90.0, self.center.lat - half_lat),
            east=min(180.0, self.center.lon + half_lon),
            north=min(90.0, self.center.lat + half_lat),
        )

    def radius_meters(self) -> float:
        """Distance from the center to the region's north-east corner."""
        _, _, distance = GEOD.inv(
            self.center.lon,
            self.center.lat,
            self.center.lon + self.longitude_delta / 2,
            min(90.0, self.center.lat + self.latitude_delta / 2),
        )
        return float(distance)

    def contains(self, coordinate: Coordinate) -> bool:
        rect = self.bounds
        return (
            rect.south <= coordinate.lat <= rect.north
            and rect.west <= coordinate.lon <= rect.east
        )


def parse_lon_lat(point: Sequence[Any]) -> Coordinate | None:
    """Validate a [lon, lat] pair, returning None when it is malformed."""
    if not isinstance(point, (list, tuple)) or len(point) < 2:
        return None
    try:
        lon = float(point[0])
        lat = float(point[1])
    except (TypeError, ValueError):
        return None
    if not (-180.0 <= lon <= 180.0 and -90.0 <= lat <= 90.0):
        return None
    return Coordinate(lat=lat, lon=lon)


def bounding_rect(points: Iterable[Sequence[Any]]) -> MapRect | None:
    """Bounding rectangle of [lon, lat] points; None if no point is valid."""
    coords = [c for c in (parse_lon_lat(p) for p in points) if c is not None]
    if not coords:
        return None
    return MapRect(
        west=min(c.lon for c in coords),
        south=min(c.lat for c in coords),
        east=max(c.lon for c in coords),
        north=max(c.lat for c in coords),
    )


def line_length_meters(points: Sequence[Sequence[Any]]) -> float:
    """Geodesic length of a [lon, lat] polyline."""
    coords = [c for c in (parse_lon_lat(p) for p in points) if c is not None]
    if len(coords) < 2:
        return 0.0
    return float(
        GEOD.line_length([c.lon for c in coords], [c.lat for c in coords]),
    )
