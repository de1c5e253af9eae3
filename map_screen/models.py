"""Value types shared by the map screen controller, renderer and API."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from core.spatial import Coordinate, MapRect, Region


class PlaceCandidate(BaseModel):
    """A place returned by search. Identity is the provider's place handle."""

    model_config = ConfigDict(frozen=True)

    place_id: str
    name: str
    coordinate: Coordinate
    display_name: str = ""
    category: str | None = None
    address: dict[str, Any] = Field(default_factory=dict)
    source: str = "unknown"

    @property
    def marker_title(self) -> str:
        return self.name or self.display_name or "Place"

    def same_place(self, other: PlaceCandidate | None) -> bool:
        return (
            other is not None
            and self.place_id == other.place_id
            and self.source == other.source
        )


class PreviewHandle(BaseModel):
    """A street-level scene for a place (look-around preview)."""

    model_config = ConfigDict(frozen=True)

    scene_id: str
    place_id: str
    coordinate: Coordinate
    heading: float | None = Field(default=None, ge=0.0, lt=360.0)
    captured: str | None = None
    attribution: str | None = None
    source: str = "unknown"


class Route(BaseModel):
    """A computed driving route. ``coordinates`` are [lon, lat] pairs."""

    model_config = ConfigDict(frozen=True)

    coordinates: list[list[float]] = Field(default_factory=list)
    distance_meters: float = 0.0
    duration_seconds: float = 0.0
    source: str = "unknown"

    @property
    def has_geometry(self) -> bool:
        return len(self.coordinates) >= 2

    def geojson(self) -> dict[str, Any] | None:
        if not self.has_geometry:
            return None
        return {"type": "LineString", "coordinates": self.coordinates}


class CameraIntent(BaseModel):
    """Where the screen asks the map camera to go."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["region", "rect"]
    region: Region | None = None
    rect: MapRect | None = None

    @classmethod
    def for_region(cls, region: Region) -> CameraIntent:
        return cls(kind="region", region=region)

    @classmethod
    def for_rect(cls, rect: MapRect) -> CameraIntent:
        return cls(kind="rect", rect=rect)


class ServiceChannel(str, Enum):
    SEARCH = "search"
    PREVIEW = "preview"
    ROUTE = "route"


class ServiceFailure(BaseModel):
    """The most recent swallowed service failure, kept for display."""

    model_config = ConfigDict(frozen=True)

    channel: ServiceChannel
    message: str
    retryable: bool = True
