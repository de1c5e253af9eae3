"""
External service contracts used by the map screen, and adapters that
implement them over a MappingProvider.

The controller only sees the three protocols below; any of them may raise,
and the controller decides what a failure means for the screen.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from config import get_search_limit
from core.spatial import GEOD, Coordinate, line_length_meters
from map_screen.models import PlaceCandidate, PreviewHandle, Route

if TYPE_CHECKING:
    from core.mapping.interfaces import Geocoder, MappingProvider, Previewer, Router
    from core.spatial import Region

logger = logging.getLogger(__name__)


class PlaceSearchService(Protocol):
    async def search(self, text: str, bias_region: Region) -> list[PlaceCandidate]: ...


class PreviewService(Protocol):
    async def fetch_preview(self, place: PlaceCandidate) -> PreviewHandle | None: ...


class RoutingService(Protocol):
    async def compute_route(
        self,
        origin: Coordinate,
        destination: PlaceCandidate,
    ) -> Route | None: ...


@dataclass(frozen=True)
class ScreenServices:
    search: PlaceSearchService
    preview: PreviewService
    routing: RoutingService


def candidate_from_result(result: dict[str, Any]) -> PlaceCandidate | None:
    """Convert a normalized geocoder result into a PlaceCandidate."""
    try:
        coordinate = Coordinate(lat=float(result["lat"]), lon=float(result["lon"]))
    except (KeyError, TypeError, ValueError):
        return None
    display_name = str(result.get("display_name") or "")
    name = str(result.get("name") or "") or display_name.split(",")[0].strip()
    place_id = str(result.get("place_id") or f"{coordinate.lat},{coordinate.lon}")
    return PlaceCandidate(
        place_id=place_id,
        name=name,
        coordinate=coordinate,
        display_name=display_name,
        category=result.get("category"),
        address=result.get("address") or {},
        source=str(result.get("source") or "unknown"),
    )


class ProviderPlaceSearch:
    def __init__(self, geocoder: Geocoder, *, limit: int | None = None) -> None:
        self._geocoder = geocoder
        self._limit = limit

    async def search(self, text: str, bias_region: Region) -> list[PlaceCandidate]:
        limit = self._limit or get_search_limit()
        results = await self._geocoder.search(
            text,
            limit=limit,
            bias_region=bias_region,
        )
        candidates: list[PlaceCandidate] = []
        for result in results:
            candidate = candidate_from_result(result)
            if candidate is None:
                logger.debug("Dropping search result without coordinates: %s", result)
                continue
            candidates.append(candidate)
        return candidates


class ProviderPreview:
    def __init__(self, previewer: Previewer) -> None:
        self._previewer = previewer

    async def fetch_preview(self, place: PlaceCandidate) -> PreviewHandle | None:
        target = place.coordinate
        scene = await self._previewer.preview(target.lat, target.lon)
        if not scene:
            return None
        scene_coord = Coordinate(lat=float(scene["lat"]), lon=float(scene["lon"]))
        # Face the camera from the panorama toward the place itself.
        azimuth, _, distance = GEOD.inv(
            scene_coord.lon,
            scene_coord.lat,
            target.lon,
            target.lat,
        )
        heading = azimuth % 360.0 if distance > 1.0 else None
        return PreviewHandle(
            scene_id=str(scene["scene_id"]),
            place_id=place.place_id,
            coordinate=scene_coord,
            heading=heading,
            captured=scene.get("captured"),
            attribution=scene.get("attribution"),
            source=str(scene.get("source") or "unknown"),
        )


class ProviderRouting:
    def __init__(self, router: Router) -> None:
        self._router = router

    async def compute_route(
        self,
        origin: Coordinate,
        destination: PlaceCandidate,
    ) -> Route | None:
        data = await self._router.route(
            [origin.as_lon_lat(), destination.coordinate.as_lon_lat()],
            costing="auto",
        )
        if not data:
            return None
        geometry = data.get("geometry") or {}
        coordinates = geometry.get("coordinates") or []
        distance = float(data.get("distance_meters") or 0)
        if not distance and coordinates:
            distance = line_length_meters(coordinates)
        return Route(
            coordinates=coordinates,
            distance_meters=distance,
            duration_seconds=float(data.get("duration_seconds") or 0),
            source=str(data.get("source") or "unknown"),
        )


def build_screen_services(provider: MappingProvider) -> ScreenServices:
    return ScreenServices(
        search=ProviderPlaceSearch(provider.geocoder),
        preview=ProviderPreview(provider.previewer),
        routing=ProviderRouting(provider.router),
    )
