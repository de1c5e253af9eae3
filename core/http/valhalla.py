"""
Valhalla HTTP client.

Driving directions against a self-hosted Valhalla instance. Responses are
normalized into a provider-neutral route dict with a GeoJSON LineString.
"""

from __future__ import annotations

import logging
from typing import Any

from config import get_valhalla_route_url
from core.exceptions import ExternalServiceException
from core.http.circuit_breaker import valhalla_breaker, with_circuit_breaker
from core.http.request import request_json
from core.http.retry import retry_async
from core.http.session import get_session
from core.polyline import decode_polyline
from core.spatial import parse_lon_lat

logger = logging.getLogger(__name__)

# Valhalla reports "No path could be found for input" as a 400
NO_ROUTE_ERROR_CODES = {442, 443}
# Valhalla's encoded shapes default to six decimal places
DEFAULT_SHAPE_PRECISION = 6


def _shape_points(shape: Any, shape_format: str | None) -> list[list[float]]:
    """[lon, lat] points from a GeoJSON line, a point list or an encoded polyline."""
    if isinstance(shape, str):
        precision = 5 if shape_format == "polyline5" else DEFAULT_SHAPE_PRECISION
        try:
            return decode_polyline(shape, precision)
        except ValueError:
            logger.warning("Discarding undecodable Valhalla shape")
            return []

    raw = shape.get("coordinates") if isinstance(shape, dict) else shape
    if not isinstance(raw, list):
        return []

    points: list[list[float]] = []
    for item in raw:
        if isinstance(item, dict):
            item = (item.get("lon"), item.get("lat"))
        coordinate = parse_lon_lat(item)
        if coordinate is not None:
            points.append([coordinate.lon, coordinate.lat])
    return points


class ValhallaClient:
    def __init__(self) -> None:
        self._route_url = get_valhalla_route_url()

    @with_circuit_breaker(valhalla_breaker)
    @retry_async()
    async def route(
        self,
        locations: list[tuple[float, float]] | list[list[float]],
        *,
        costing: str = "auto",
        timeout_s: float | None = None,
    ) -> dict[str, Any] | None:
        """Route through [lon, lat] locations; None when no path exists."""
        stops = [c for c in (parse_lon_lat(item) for item in locations) if c is not None]
        if len(stops) < 2:
            msg = "Valhalla route requires at least two locations."
            raise ExternalServiceException(msg)

        payload = {
            "locations": [{"lon": stop.lon, "lat": stop.lat} for stop in stops],
            "costing": costing,
            "directions_options": {"units": "kilometers"},
            "shape_format": "geojson",
        }
        session = await get_session()
        try:
            data = await request_json(
                "POST",
                self._route_url,
                session=session,
                json=payload,
                service_name="Valhalla route",
                timeout_s=timeout_s,
            )
        except ExternalServiceException as exc:
            if self._is_no_route_error(exc):
                logger.info("Valhalla found no route between %d stops", len(stops))
                return None
            raise
        if not isinstance(data, dict):
            msg = "Valhalla route error: unexpected response"
            raise ExternalServiceException(msg, {"url": self._route_url})
        return self._normalize_route_response(data)

    @staticmethod
    def _is_no_route_error(exc: ExternalServiceException) -> bool:
        if exc.details.get("status") != 400:
            return False
        body = str(exc.details.get("body") or "").replace(" ", "")
        return any(f'"error_code":{code}' in body for code in NO_ROUTE_ERROR_CODES)

    @staticmethod
    def _normalize_route_response(data: dict[str, Any]) -> dict[str, Any]:
        trip = data.get("trip") or {}
        legs = [leg for leg in trip.get("legs") or [] if isinstance(leg, dict)]
        summary = trip.get("summary") or (legs[0].get("summary") if legs else None) or {}
        coords = ValhallaClient._route_coordinates(trip, legs)
        return {
            "geometry": {"type": "LineString", "coordinates": coords} if coords else None,
            "duration_seconds": summary.get("time", 0),
            "distance_meters": summary.get("length", 0) * 1000,
            "source": "valhalla",
        }

    @staticmethod
    def _route_coordinates(
        trip: dict[str, Any],
        legs: list[dict[str, Any]],
    ) -> list[list[float]]:
        """Join the leg shapes into one line, else use a trip-level shape."""
        shape_format = trip.get("shape_format")
        coords: list[list[float]] = []
        for leg in legs:
            points = _shape_points(leg.get("shape"), leg.get("shape_format") or shape_format)
            # Consecutive legs share the stop between them
            if coords and points and coords[-1] == points[0]:
                points = points[1:]
            coords.extend(points)
        return coords or _shape_points(trip.get("shape"), shape_format)
