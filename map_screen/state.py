"""
Map screen state.

The screen is always in exactly one ScreenMode:

    Idle        search field inactive, nothing selected
    Searching   search field active, nothing selected
    Viewing     detail sheet open for a selected place (with its preview)
    Routing     a route to a destination is displayed, detail sheet closed

Data that is independent of the mode (query text, candidates, the last
camera region, camera intent) lives beside it on ScreenState.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from core.spatial import Region
from map_screen.models import (
    CameraIntent,
    PlaceCandidate,
    PreviewHandle,
    Route,
    ServiceFailure,
)


@dataclass(frozen=True)
class Idle:
    name = "idle"


@dataclass(frozen=True)
class Searching:
    name = "searching"


@dataclass(frozen=True)
class Viewing:
    selection: PlaceCandidate
    preview: PreviewHandle | None = None
    name = "viewing"


@dataclass(frozen=True)
class Routing:
    destination: PlaceCandidate
    route: Route | None = None
    name = "routing"


ScreenMode = Idle | Searching | Viewing | Routing


@dataclass
class ScreenState:
    mode: ScreenMode = field(default_factory=Idle)
    search_active: bool = False
    query: str = ""
    candidates: list[PlaceCandidate] = field(default_factory=list)
    viewing_region: Region | None = None
    camera: CameraIntent | None = None
    last_failure: ServiceFailure | None = None

    def resting_mode(self) -> Idle | Searching:
        """The mode to fall back to when nothing is selected or routed."""
        return Searching() if self.search_active else Idle()

    @property
    def selection(self) -> PlaceCandidate | None:
        if isinstance(self.mode, Viewing):
            return self.mode.selection
        return None

    @property
    def preview(self) -> PreviewHandle | None:
        if isinstance(self.mode, Viewing):
            return self.mode.preview
        return None

    @property
    def detail_visible(self) -> bool:
        return isinstance(self.mode, Viewing)

    @property
    def route_displaying(self) -> bool:
        return isinstance(self.mode, Routing)

    @property
    def route(self) -> Route | None:
        if isinstance(self.mode, Routing):
            return self.mode.route
        return None

    @property
    def route_destination(self) -> PlaceCandidate | None:
        if isinstance(self.mode, Routing):
            return self.mode.destination
        return None
