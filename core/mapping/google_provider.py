"""
Google Maps provider utilizing the Google Maps Platform web services.

Places Text Search for search, Directions for routing and the Street View
metadata endpoint for look-around previews.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from core.exceptions import ExternalServiceException
from core.http.circuit_breaker import google_breaker, with_circuit_breaker
from core.http.rate_limiting import google_rate_limiter
from core.http.request import request_json
from core.http.retry import retry_async
from core.http.session import get_session
from core.mapping.interfaces import Geocoder, MappingProvider, Previewer, Router
from core.polyline import decode_polyline

if TYPE_CHECKING:
    from core.spatial import Region

logger = logging.getLogger(__name__)

TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
STREETVIEW_METADATA_URL = "https://maps.googleapis.com/maps/api/streetview/metadata"

# Places Text Search rejects a larger location bias radius
MAX_SEARCH_RADIUS_M = 50_000
EMPTY_STATUSES = {"ZERO_RESULTS", "NOT_FOUND"}


def _status(data: Any) -> str:
    if not isinstance(data, dict):
        return "UNKNOWN"
    return str(data.get("status") or "UNKNOWN")


async def _google_get(
    url: str,
    params: dict[str, Any],
    *,
    service_name: str,
    timeout_s: float | None = None,
) -> dict[str, Any] | None:
    """GET a Google web service; None for empty statuses, raise for errors."""
    session = await get_session()
    async with google_rate_limiter:
        data = await request_json(
            "GET",
            url,
            session=session,
            params=params,
            service_name=service_name,
            timeout_s=timeout_s,
        )
    status = _status(data)
    if status in EMPTY_STATUSES:
        return None
    if status != "OK":
        msg = f"{service_name} error: {status}"
        details: dict[str, Any] = {"status": status}
        if isinstance(data, dict) and data.get("error_message"):
            details["error_message"] = data["error_message"]
        raise ExternalServiceException(msg, details)
    return data


class GoogleGeocoder(Geocoder):
    def __init__(self, api_key: str) -> None:
        self._api_key = api_key

    @with_circuit_breaker(google_breaker)
    @retry_async()
    async def search(
        self,
        query: str,
        *,
        limit: int = 10,
        bias_region: Region | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"query": query, "key": self._api_key}
        if bias_region is not None:
            center = bias_region.center
            params["location"] = f"{center.lat},{center.lon}"
            params["radius"] = min(
                MAX_SEARCH_RADIUS_M,
                max(1, round(bias_region.radius_meters())),
            )

        data = await _google_get(
            TEXT_SEARCH_URL,
            params,
            service_name="Google text search",
        )
        if data is None:
            return []

        mapped: list[dict[str, Any]] = []
        for result in data.get("results") or []:
            if len(mapped) >= limit:
                break
            if not isinstance(result, dict):
                continue
            location = (result.get("geometry") or {}).get("location") or {}
            lat = location.get("lat")
            lng = location.get("lng")
            if lat is None or lng is None:
                continue
            mapped.append(
                {
                    "place_id": result.get("place_id") or "",
                    "name": result.get("name") or "",
                    "display_name": result.get("formatted_address")
                    or result.get("name")
                    or "",
                    "lat": float(lat),
                    "lon": float(lng),
                    "category": (result.get("types") or [None])[0],
                    "address": {},
                    "source": "google",
                },
            )
        return mapped


class GoogleRouter(Router):
    def __init__(self, api_key: str) -> None:
        self._api_key = api_key

    @with_circuit_breaker(google_breaker)
    @retry_async()
    async def route(
        self,
        locations: list[tuple[float, float]] | list[list[float]],
        *,
        costing: str = "auto",
        timeout_s: float | None = None,
    ) -> dict[str, Any] | None:
        if len(locations) < 2:
            msg = "Google route requires at least two locations."
            raise ExternalServiceException(msg)

        origin = locations[0]
        destination = locations[-1]
        waypoints = locations[1:-1]

        params: dict[str, Any] = {
            "origin": f"{origin[1]},{origin[0]}",
            "destination": f"{destination[1]},{destination[0]}",
            "mode": "driving",
            "key": self._api_key,
        }
        if waypoints:
            params["waypoints"] = "|".join(f"{wp[1]},{wp[0]}" for wp in waypoints)

        data = await _google_get(
            DIRECTIONS_URL,
            params,
            service_name="Google directions",
            timeout_s=timeout_s,
        )
        if data is None or not data.get("routes"):
            return None

        route = data["routes"][0]
        legs = route.get("legs") or []
        total_dist_meters = sum(
            (leg.get("distance") or {}).get("value", 0) for leg in legs
        )
        total_time_seconds = sum(
            (leg.get("duration") or {}).get("value", 0) for leg in legs
        )

        geometry = None
        encoded = (route.get("overview_polyline") or {}).get("points", "")
        if encoded:
            try:
                coords = decode_polyline(encoded, 5)
            except ValueError as exc:
                msg = "Google directions error: invalid polyline"
                raise ExternalServiceException(msg, {"shape_format": "polyline5"}) from exc
            geometry = {"type": "LineString", "coordinates": coords}

        return {
            "geometry": geometry,
            "distance_meters": total_dist_meters,
            "duration_seconds": total_time_seconds,
            "source": "google",
        }


class GoogleStreetViewPreviewer(Previewer):
    """Street View panorama lookup through the (free) metadata endpoint."""

    def __init__(self, api_key: str, *, search_radius_m: int = 50) -> None:
        self._api_key = api_key
        self._search_radius_m = search_radius_m

    @with_circuit_breaker(google_breaker)
    @retry_async()
    async def preview(self, lat: float, lon: float) -> dict[str, Any] | None:
        params = {
            "location": f"{lat},{lon}",
            "radius": self._search_radius_m,
            "source": "outdoor",
            "key": self._api_key,
        }
        data = await _google_get(
            STREETVIEW_METADATA_URL,
            params,
            service_name="Google Street View metadata",
        )
        if data is None or not data.get("pano_id"):
            return None
        location = data.get("location") or {}
        return {
            "scene_id": data["pano_id"],
            "lat": location.get("lat", lat),
            "lon": location.get("lng", lon),
            "captured": data.get("date"),
            "attribution": data.get("copyright"),
            "source": "google",
        }


class GoogleProvider(MappingProvider):
    """Mapping provider utilizing Google Maps Platform APIs."""

    def __init__(self, api_key: str) -> None:
        self._geocoder = GoogleGeocoder(api_key)
        self._router = GoogleRouter(api_key)
        self._previewer = GoogleStreetViewPreviewer(api_key)

    @property
    def geocoder(self) -> Geocoder:
        return self._geocoder

    @property
    def router(self) -> Router:
        return self._router

    @property
    def previewer(self) -> Previewer:
        return self._previewer
