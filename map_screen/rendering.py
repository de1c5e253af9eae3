"""
Scene rendering policy.

Turns a ScreenState into a declarative MapScene: what markers, overlays and
chrome a client should draw. The controller never looks at scenes.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from config import get_home_title
from core.spatial import Coordinate
from map_screen.models import (
    CameraIntent,
    PlaceCandidate,
    PreviewHandle,
    ServiceFailure,
)
from map_screen.state import ScreenState

NO_PREVIEW_TEXT = "No Preview Available"
ROUTE_STROKE_COLOR = "blue"
ROUTE_STROKE_WIDTH = 7


class Marker(BaseModel):
    model_config = ConfigDict(frozen=True)

    place_id: str
    title: str
    coordinate: Coordinate
    tint: str = "blue"
    selected: bool = False


class Annotation(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    coordinate: Coordinate
    symbol: str
    title_visible: bool = False


class RouteOverlay(BaseModel):
    model_config = ConfigDict(frozen=True)

    geometry: dict[str, Any]
    stroke_color: str = ROUTE_STROKE_COLOR
    stroke_width: int = ROUTE_STROKE_WIDTH
    distance_meters: float = 0.0
    duration_seconds: float = 0.0


class DetailSheet(BaseModel):
    model_config = ConfigDict(frozen=True)

    place: PlaceCandidate
    preview: PreviewHandle | None = None
    placeholder: str | None = None
    actions: list[Literal["get_directions", "close"]] = ["get_directions", "close"]


class MapScene(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: str
    query: str
    search_active: bool
    home: Annotation
    markers: list[Marker]
    route_overlay: RouteOverlay | None = None
    navigation_chrome_visible: bool = True
    detail: DetailSheet | None = None
    end_route_available: bool = False
    camera: CameraIntent | None = None
    last_failure: ServiceFailure | None = None


def visible_candidates(state: ScreenState) -> list[PlaceCandidate]:
    """While routing only the destination is shown; otherwise every candidate."""
    destination = state.route_destination
    if destination is None:
        return list(state.candidates)
    return [c for c in state.candidates if c.same_place(destination)]


def build_scene(state: ScreenState, *, origin: Coordinate) -> MapScene:
    selection = state.selection
    markers = [
        Marker(
            place_id=candidate.place_id,
            title=candidate.marker_title,
            coordinate=candidate.coordinate,
            selected=candidate.same_place(selection),
        )
        for candidate in visible_candidates(state)
    ]

    overlay = None
    route = state.route
    if route is not None and route.has_geometry:
        overlay = RouteOverlay(
            geometry=route.geojson() or {},
            distance_meters=route.distance_meters,
            duration_seconds=route.duration_seconds,
        )

    detail = None
    if selection is not None and state.detail_visible:
        preview = state.preview
        detail = DetailSheet(
            place=selection,
            preview=preview,
            placeholder=None if preview is not None else NO_PREVIEW_TEXT,
        )

    return MapScene(
        mode=state.mode.name,
        query=state.query,
        search_active=state.search_active,
        home=Annotation(title=get_home_title(), coordinate=origin, symbol="applelogo"),
        markers=markers,
        route_overlay=overlay,
        navigation_chrome_visible=not state.route_displaying,
        detail=detail,
        end_route_available=state.route_displaying,
        camera=state.camera,
        last_failure=state.last_failure,
    )
