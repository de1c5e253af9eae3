"""
Nominatim HTTP client.

Forward place search against a self-hosted Nominatim instance, biased to the
region the map is currently showing.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from config import get_nominatim_search_url, get_nominatim_user_agent
from core.exceptions import ExternalServiceException
from core.http.circuit_breaker import nominatim_breaker, with_circuit_breaker
from core.http.request import request_json
from core.http.retry import retry_async
from core.http.session import get_session

if TYPE_CHECKING:
    from core.spatial import Region

logger = logging.getLogger(__name__)


class NominatimClient:
    def __init__(self) -> None:
        self._search_url = get_nominatim_search_url()
        self._user_agent = get_nominatim_user_agent()

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self._user_agent}

    @staticmethod
    def _viewbox(region: Region) -> str:
        # Nominatim has no wrapped viewbox; Region.bounds clips at the antimeridian
        rect = region.bounds
        return f"{rect.west},{rect.north},{rect.east},{rect.south}"

    @staticmethod
    def _normalize_result(result: dict[str, Any]) -> dict[str, Any] | None:
        try:
            lat = float(result["lat"])
            lon = float(result["lon"])
        except (KeyError, TypeError, ValueError):
            logger.debug("Skipping Nominatim result without coordinates: %s", result)
            return None
        osm_type = result.get("osm_type")
        osm_id = result.get("osm_id")
        place_id = f"{osm_type}/{osm_id}" if osm_type and osm_id else None
        return {
            "place_id": place_id or str(result.get("place_id", "")),
            "name": result.get("name") or "",
            "display_name": result.get("display_name") or "",
            "lat": lat,
            "lon": lon,
            "category": result.get("category") or result.get("class"),
            "address": result.get("address") or {},
            "source": "nominatim",
        }

    @with_circuit_breaker(nominatim_breaker)
    @retry_async()
    async def search(
        self,
        query: str,
        *,
        limit: int = 10,
        bias_region: Region | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "q": query,
            "format": "jsonv2",
            "limit": limit,
            "addressdetails": 1,
        }
        if bias_region is not None:
            params["viewbox"] = self._viewbox(bias_region)

        session = await get_session()
        results = await request_json(
            "GET",
            self._search_url,
            session=session,
            params=params,
            headers=self._headers(),
            service_name="Nominatim search",
        )
        if not isinstance(results, list):
            msg = "Nominatim search error: unexpected response"
            raise ExternalServiceException(msg, {"url": self._search_url})

        normalized = [self._normalize_result(r) for r in results if isinstance(r, dict)]
        places = [place for place in normalized if place is not None]
        logger.debug("Nominatim search %r returned %d places", query, len(places))
        return places
