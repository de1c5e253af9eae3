"""
Map screen controller.

Owns the ScreenState and applies every transition: user actions mutate the
state synchronously, while search, preview and route lookups run as
background asyncio tasks whose results are applied when they complete.

Each lookup is issued with a ticket from a per-channel counter. A completion
is applied only while its ticket is still the newest one for that channel and
the state it was issued for still holds; anything else is a stale response
and is dropped. Service failures never escape a lookup task: they become an
empty or absent result plus a ServiceFailure on the state.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from config import get_default_span_meters, get_origin
from core.exceptions import ValidationException
from core.spatial import Coordinate, Region, bounding_rect
from map_screen.models import (
    CameraIntent,
    PlaceCandidate,
    PreviewHandle,
    Route,
    ServiceChannel,
    ServiceFailure,
)
from map_screen.state import Idle, Routing, ScreenState, Searching, Viewing

if TYPE_CHECKING:
    from collections.abc import Coroutine

    from map_screen.services import ScreenServices

logger = logging.getLogger(__name__)


def default_origin() -> Coordinate:
    lat, lon = get_origin()
    return Coordinate(lat=lat, lon=lon)


def default_region(origin: Coordinate | None = None) -> Region:
    span = get_default_span_meters()
    return Region.from_meters(origin or default_origin(), span, span)


class MapScreenController:
    """View-state coordinator for a single map screen."""

    def __init__(
        self,
        services: ScreenServices,
        *,
        origin: Coordinate | None = None,
        home_region: Region | None = None,
    ) -> None:
        self.services = services
        self.origin = origin or default_origin()
        self.home_region = home_region or default_region(self.origin)
        self.state = ScreenState(camera=CameraIntent.for_region(self.home_region))
        self._tickets: dict[ServiceChannel, int] = dict.fromkeys(ServiceChannel, 0)
        self._tasks: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Ticketing and task bookkeeping
    # ------------------------------------------------------------------

    def _issue(self, channel: ServiceChannel) -> int:
        self._tickets[channel] += 1
        return self._tickets[channel]

    def _invalidate(self, channel: ServiceChannel) -> None:
        """Make every in-flight lookup on ``channel`` stale."""
        self._issue(channel)

    def _is_current(self, channel: ServiceChannel, ticket: int) -> bool:
        return self._tickets[channel] == ticket

    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> asyncio.Task[None]:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait until no lookup task is in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _record_failure(self, channel: ServiceChannel, exc: Exception) -> None:
        message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
        self.state.last_failure = ServiceFailure(
            channel=channel,
            message=message,
            retryable=not isinstance(exc, ValidationException),
        )

    def _clear_failure(self, channel: ServiceChannel) -> None:
        failure = self.state.last_failure
        if failure is not None and failure.channel == channel:
            self.state.last_failure = None

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def activate_search(self) -> None:
        """The search field gained focus."""
        self.state.search_active = True
        if isinstance(self.state.mode, Idle):
            self.state.mode = Searching()

    def submit_search(
        self,
        query: str,
        region: Region | None = None,
    ) -> asyncio.Task[None]:
        """
        Search for ``query`` near ``region``.

        Falls back to the last camera region, then to the home region, when no
        region is given. The candidate list is replaced when the search
        completes; a failed search yields an empty list.
        """
        text = (query or "").strip()
        if not text:
            raise ValidationException(
                "Search query must not be empty",
                {"code": "query_empty"},
            )

        self.state.query = query
        self.activate_search()
        bias_region = region or self.state.viewing_region or self.home_region
        ticket = self._issue(ServiceChannel.SEARCH)
        logger.info("Searching for %r (ticket %d)", text, ticket)
        return self._spawn(
            self._run_search(ticket, text, bias_region),
            name=f"map-search-{ticket}",
        )

    async def _run_search(self, ticket: int, text: str, bias_region: Region) -> None:
        failure: Exception | None = None
        try:
            results = await self.services.search.search(text, bias_region)
        except Exception as exc:
            logger.warning("Place search for %r failed: %s", text, exc)
            results, failure = [], exc

        if not self._is_current(ServiceChannel.SEARCH, ticket):
            logger.debug("Discarding stale search results for %r (ticket %d)", text, ticket)
            return

        self.state.candidates = list(results or [])
        if failure is not None:
            self._record_failure(ServiceChannel.SEARCH, failure)
        else:
            self._clear_failure(ServiceChannel.SEARCH)
        logger.info("Search for %r produced %d candidates", text, len(self.state.candidates))

    def dismiss_search(self) -> None:
        """
        The search field was dismissed.

        Clears the query, candidates and selection, closes the detail sheet and
        points the camera back at the last viewed region. A displayed route is
        kept.
        """
        self._invalidate(ServiceChannel.SEARCH)
        self.state.search_active = False
        self.state.query = ""
        self.state.candidates = []
        if not isinstance(self.state.mode, Routing):
            if isinstance(self.state.mode, Viewing):
                self._invalidate(ServiceChannel.PREVIEW)
                self._invalidate(ServiceChannel.ROUTE)
            self.state.mode = Idle()
        self.state.camera = CameraIntent.for_region(
            self.state.viewing_region or self.home_region,
        )

    # ------------------------------------------------------------------
    # Selection and preview
    # ------------------------------------------------------------------

    def select_candidate(
        self,
        candidate: PlaceCandidate | None,
    ) -> asyncio.Task[None] | None:
        """Select a place (opening its detail sheet) or clear the selection."""
        if isinstance(self.state.mode, Routing):
            if candidate is None:
                return None
            raise ValidationException(
                "End the current route before selecting another place",
                {"code": "route_active"},
            )

        if candidate is None:
            if isinstance(self.state.mode, Viewing):
                self._invalidate(ServiceChannel.PREVIEW)
                self._invalidate(ServiceChannel.ROUTE)
            self.state.mode = self.state.resting_mode()
            return None

        current = self.state.selection
        if current is not None and not current.same_place(candidate):
            self._invalidate(ServiceChannel.ROUTE)
        self.state.mode = Viewing(selection=candidate)
        return self.refresh_preview()

    def dismiss_detail(self) -> None:
        """The detail sheet's close button: hide the sheet and deselect."""
        self.select_candidate(None)

    def refresh_preview(self) -> asyncio.Task[None] | None:
        """Clear the preview and fetch a fresh one for the current selection."""
        mode = self.state.mode
        if not isinstance(mode, Viewing):
            return None
        selection = mode.selection
        self.state.mode = Viewing(selection=selection, preview=None)
        ticket = self._issue(ServiceChannel.PREVIEW)
        return self._spawn(
            self._run_preview(ticket, selection),
            name=f"map-preview-{ticket}",
        )

    async def _run_preview(self, ticket: int, selection: PlaceCandidate) -> None:
        failure: Exception | None = None
        preview: PreviewHandle | None
        try:
            preview = await self.services.preview.fetch_preview(selection)
        except Exception as exc:
            logger.warning("Preview lookup for %s failed: %s", selection.place_id, exc)
            preview, failure = None, exc

        mode = self.state.mode
        if not (
            self._is_current(ServiceChannel.PREVIEW, ticket)
            and isinstance(mode, Viewing)
            and mode.selection.same_place(selection)
        ):
            logger.debug("Discarding stale preview for %s (ticket %d)", selection.place_id, ticket)
            return

        self.state.mode = Viewing(selection=mode.selection, preview=preview)
        if failure is not None:
            self._record_failure(ServiceChannel.PREVIEW, failure)
        else:
            self._clear_failure(ServiceChannel.PREVIEW)

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def request_route(self) -> asyncio.Task[None]:
        """Request driving directions from the origin to the selected place."""
        selection = self.state.selection
        if selection is None:
            raise ValidationException(
                "Select a place before requesting directions",
                {"code": "selection_required"},
            )
        ticket = self._issue(ServiceChannel.ROUTE)
        logger.info("Requesting route to %s (ticket %d)", selection.place_id, ticket)
        return self._spawn(
            self._run_route(ticket, selection),
            name=f"map-route-{ticket}",
        )

    async def _run_route(self, ticket: int, destination: PlaceCandidate) -> None:
        failure: Exception | None = None
        route: Route | None
        try:
            route = await self.services.routing.compute_route(self.origin, destination)
        except Exception as exc:
            logger.warning("Route to %s failed: %s", destination.place_id, exc)
            route, failure = None, exc

        mode = self.state.mode
        if not (
            self._is_current(ServiceChannel.ROUTE, ticket)
            and isinstance(mode, Viewing)
            and mode.selection.same_place(destination)
        ):
            logger.debug("Discarding stale route to %s (ticket %d)", destination.place_id, ticket)
            return

        self._invalidate(ServiceChannel.PREVIEW)
        self.state.mode = Routing(destination=mode.selection, route=route)
        if route is not None and route.has_geometry:
            rect = bounding_rect(route.coordinates)
            if rect is not None:
                self.state.camera = CameraIntent.for_rect(rect)
        if failure is not None:
            self._record_failure(ServiceChannel.ROUTE, failure)
        else:
            self._clear_failure(ServiceChannel.ROUTE)

    def end_route(self) -> asyncio.Task[None] | None:
        """
        Stop displaying the route.

        The destination becomes the selection again with its detail sheet
        open, and the camera returns to the home region.
        """
        self._invalidate(ServiceChannel.ROUTE)
        self.state.camera = CameraIntent.for_region(self.home_region)
        mode = self.state.mode
        if not isinstance(mode, Routing):
            return None
        self.state.mode = Viewing(selection=mode.destination)
        return self.refresh_preview()

    # ------------------------------------------------------------------
    # Camera
    # ------------------------------------------------------------------

    def on_camera_moved(self, region: Region) -> None:
        self.state.viewing_region = region
