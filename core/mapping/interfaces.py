"""
Mapping provider interfaces for place search, routing and street-level previews.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from core.spatial import Region


class Geocoder(Protocol):
    """Interface for forward place search."""

    async def search(
        self,
        query: str,
        *,
        limit: int = 10,
        bias_region: Region | None = None,
    ) -> list[dict[str, Any]]:
        """
        Search for places matching free text, weighted toward ``bias_region``.

        Each result carries at least place_id, name, display_name, lat, lon
        and source.
        """
        ...


class Router(Protocol):
    """Interface for driving directions."""

    async def route(
        self,
        locations: list[tuple[float, float]] | list[list[float]],
        *,
        costing: str = "auto",
        timeout_s: float | None = None,
    ) -> dict[str, Any] | None:
        """
        Calculate the best route through [lon, lat] locations.

        Returns a dict with geometry (GeoJSON LineString or None),
        distance_meters and duration_seconds, or None when no route exists.
        """
        ...


class Previewer(Protocol):
    """Interface for street-level imagery lookups."""

    async def preview(self, lat: float, lon: float) -> dict[str, Any] | None:
        """Find the street-level scene nearest a coordinate, or None."""
        ...


class MappingProvider(Protocol):
    """Factory interface for instantiating the right mapping components."""

    @property
    def geocoder(self) -> Geocoder: ...

    @property
    def router(self) -> Router: ...

    @property
    def previewer(self) -> Previewer: ...
