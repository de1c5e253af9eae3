"""
Map screen API.

Exposes the single map screen over HTTP: every mutating endpoint performs the
user action on the controller and answers with the rendered scene. With
``wait=true`` (the default) the response reflects completed lookups;
``wait=false`` returns immediately with lookups still in flight.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field

from core.api import api_route
from core.exceptions import ResourceNotFoundException
from core.spatial import Region
from map_screen.controller import MapScreenController
from map_screen.rendering import MapScene, build_scene

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/map", tags=["map"])

WaitParam = Annotated[
    bool,
    Query(description="Wait for in-flight lookups before answering"),
]


class SearchRequest(BaseModel):
    query: str = Field(description="Free-text place search")
    region: Region | None = Field(
        default=None,
        description="Region to bias results toward; defaults to the last camera region",
    )


class SelectRequest(BaseModel):
    place_id: str | None = Field(
        default=None,
        description="Candidate to select; null clears the selection",
    )


class CameraRequest(BaseModel):
    region: Region


def get_controller(request: Request) -> MapScreenController:
    return request.app.state.map_screen


ControllerDep = Annotated[MapScreenController, Depends(get_controller)]


async def _scene(controller: MapScreenController, wait: bool) -> MapScene:
    if wait:
        await controller.wait_idle()
    return build_scene(controller.state, origin=controller.origin)


@router.get("/scene", response_model=MapScene)
@api_route(logger)
async def get_scene(controller: ControllerDep, wait: WaitParam = False) -> MapScene:
    """Current rendered scene."""
    return await _scene(controller, wait)


@router.post("/search", response_model=MapScene)
@api_route(logger)
async def submit_search(
    payload: SearchRequest,
    controller: ControllerDep,
    wait: WaitParam = True,
) -> MapScene:
    controller.submit_search(payload.query, payload.region)
    return await _scene(controller, wait)


@router.post("/search/activate", response_model=MapScene)
@api_route(logger)
async def activate_search(controller: ControllerDep) -> MapScene:
    controller.activate_search()
    return await _scene(controller, False)


@router.post("/search/dismiss", response_model=MapScene)
@api_route(logger)
async def dismiss_search(controller: ControllerDep) -> MapScene:
    controller.dismiss_search()
    return await _scene(controller, False)


@router.post("/select", response_model=MapScene)
@api_route(logger)
async def select_candidate(
    payload: SelectRequest,
    controller: ControllerDep,
    wait: WaitParam = True,
) -> MapScene:
    """Select a search candidate by place id, or clear the selection."""
    candidate = None
    if payload.place_id is not None:
        candidate = next(
            (c for c in controller.state.candidates if c.place_id == payload.place_id),
            None,
        )
        if candidate is None:
            raise ResourceNotFoundException(
                f"No search candidate with place_id {payload.place_id!r}",
                {"place_id": payload.place_id},
            )
    controller.select_candidate(candidate)
    return await _scene(controller, wait)


@router.post("/detail/dismiss", response_model=MapScene)
@api_route(logger)
async def dismiss_detail(controller: ControllerDep) -> MapScene:
    controller.dismiss_detail()
    return await _scene(controller, False)


@router.post("/route", response_model=MapScene)
@api_route(logger)
async def request_route(controller: ControllerDep, wait: WaitParam = True) -> MapScene:
    """Directions from the fixed origin to the selected place."""
    controller.request_route()
    return await _scene(controller, wait)


@router.post("/route/end", response_model=MapScene)
@api_route(logger)
async def end_route(controller: ControllerDep, wait: WaitParam = True) -> MapScene:
    controller.end_route()
    return await _scene(controller, wait)


@router.post("/camera", response_model=MapScene)
@api_route(logger)
async def camera_moved(payload: CameraRequest, controller: ControllerDep) -> MapScene:
    controller.on_camera_moved(payload.region)
    return await _scene(controller, False)
