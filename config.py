"""Centralized configuration for environment variables and external APIs.

This module is the single source of truth for configuration used across the
application. Import helpers from here rather than calling os.getenv directly
in multiple places. Values are read at call time so tests can patch the
environment.
"""

from __future__ import annotations

import os
from enum import Enum
from typing import Final

from dotenv import load_dotenv

# Load environment variables from .env if present
load_dotenv()


class MapProvider(str, Enum):
    """Which backend stack serves search, routing and previews."""

    SELF_HOSTED = "self_hosted"
    GOOGLE = "google"


# --- Fixed origin (Apple Park) and default region size ---
DEFAULT_ORIGIN_LAT: Final[float] = 37.3364
DEFAULT_ORIGIN_LON: Final[float] = -122.0090
DEFAULT_SPAN_METERS: Final[float] = 10_000.0
DEFAULT_HOME_TITLE: Final[str] = "Apple Park"

DEFAULT_NOMINATIM_BASE_URL: Final[str] = "http://nominatim:8080"
DEFAULT_NOMINATIM_USER_AGENT: Final[str] = "MapScreen/1.0"
DEFAULT_VALHALLA_BASE_URL: Final[str] = "http://valhalla:8002"
DEFAULT_SEARCH_LIMIT: Final[int] = 10


def _env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _env_float(name: str, default: float) -> float:
    raw = _env_str(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        msg = f"{name} must be a number, got {raw!r}"
        raise RuntimeError(msg) from exc


def _env_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw = _env_str(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        msg = f"{name} must be an integer, got {raw!r}"
        raise RuntimeError(msg) from exc
    if value < minimum:
        msg = f"{name} must be >= {minimum}, got {value}"
        raise RuntimeError(msg)
    return value


# --- Mapping provider ---


def get_map_provider() -> MapProvider:
    raw = _env_str("MAP_PROVIDER", MapProvider.SELF_HOSTED.value).lower()
    try:
        return MapProvider(raw)
    except ValueError as exc:
        allowed = ", ".join(p.value for p in MapProvider)
        msg = f"MAP_PROVIDER must be one of: {allowed}"
        raise RuntimeError(msg) from exc


def get_google_maps_api_key() -> str:
    return _env_str("GOOGLE_MAPS_API_KEY")


# --- Nominatim ---


def get_nominatim_base_url() -> str:
    return _env_str("NOMINATIM_BASE_URL", DEFAULT_NOMINATIM_BASE_URL).rstrip("/")


def get_nominatim_search_url() -> str:
    return f"{get_nominatim_base_url()}/search"


def get_nominatim_user_agent() -> str:
    return _env_str("NOMINATIM_USER_AGENT", DEFAULT_NOMINATIM_USER_AGENT)


# --- Valhalla ---


def get_valhalla_base_url() -> str:
    return _env_str("VALHALLA_BASE_URL", DEFAULT_VALHALLA_BASE_URL).rstrip("/")


def get_valhalla_route_url() -> str:
    return f"{get_valhalla_base_url()}/route"


# --- Map screen ---


def get_origin() -> tuple[float, float]:
    """Return the fixed routing origin as (lat, lon)."""
    lat = _env_float("MAP_ORIGIN_LAT", DEFAULT_ORIGIN_LAT)
    lon = _env_float("MAP_ORIGIN_LON", DEFAULT_ORIGIN_LON)
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        msg = f"MAP_ORIGIN_LAT/MAP_ORIGIN_LON out of range: {lat}, {lon}"
        raise RuntimeError(msg)
    return lat, lon


def get_default_span_meters() -> float:
    span = _env_float("MAP_DEFAULT_SPAN_METERS", DEFAULT_SPAN_METERS)
    if span <= 0:
        msg = "MAP_DEFAULT_SPAN_METERS must be positive"
        raise RuntimeError(msg)
    return span


def get_home_title() -> str:
    return _env_str("MAP_HOME_TITLE", DEFAULT_HOME_TITLE)


def get_search_limit() -> int:
    return _env_int("MAP_SEARCH_LIMIT", DEFAULT_SEARCH_LIMIT, minimum=1)


def get_http_max_retries() -> int:
    return _env_int("HTTP_MAX_RETRIES", 0)


__all__ = [
    "DEFAULT_HOME_TITLE",
    "DEFAULT_NOMINATIM_BASE_URL",
    "DEFAULT_NOMINATIM_USER_AGENT",
    "DEFAULT_ORIGIN_LAT",
    "DEFAULT_ORIGIN_LON",
    "DEFAULT_SEARCH_LIMIT",
    "DEFAULT_SPAN_METERS",
    "DEFAULT_VALHALLA_BASE_URL",
    "MapProvider",
    "get_default_span_meters",
    "get_google_maps_api_key",
    "get_home_title",
    "get_http_max_retries",
    "get_map_provider",
    "get_nominatim_base_url",
    "get_nominatim_search_url",
    "get_nominatim_user_agent",
    "get_origin",
    "get_search_limit",
    "get_valhalla_base_url",
    "get_valhalla_route_url",
]
