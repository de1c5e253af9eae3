"""
Local mapping provider wrapping the self-hosted Nominatim and Valhalla containers.
"""

from __future__ import annotations

import logging
from typing import Any

from core.http.nominatim import NominatimClient
from core.http.valhalla import ValhallaClient
from core.mapping.interfaces import Geocoder, MappingProvider, Previewer, Router

logger = logging.getLogger(__name__)


class NoImageryPreviewer(Previewer):
    """The self-hosted stack carries no street-level imagery."""

    async def preview(self, lat: float, lon: float) -> dict[str, Any] | None:
        logger.debug("No street-level imagery for %.5f,%.5f on self-hosted stack", lat, lon)
        return None


class LocalProvider(MappingProvider):
    """Mapping provider utilizing self-hosted OSM data."""

    def __init__(self) -> None:
        self._geocoder = NominatimClient()
        self._router = ValhallaClient()
        self._previewer = NoImageryPreviewer()

    @property
    def geocoder(self) -> Geocoder:
        return self._geocoder

    @property
    def router(self) -> Router:
        return self._router

    @property
    def previewer(self) -> Previewer:
        return self._previewer
