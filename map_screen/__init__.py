"""Map screen: view state, coordination policy and scene rendering."""

from map_screen.controller import MapScreenController
from map_screen.rendering import MapScene, build_scene
from map_screen.services import ScreenServices, build_screen_services

__all__ = [
    "MapScene",
    "MapScreenController",
    "ScreenServices",
    "build_scene",
    "build_screen_services",
]
