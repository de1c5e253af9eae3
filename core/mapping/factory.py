"""
Factory for resolving the active MappingProvider.
"""

from __future__ import annotations

import logging

from config import MapProvider, get_google_maps_api_key, get_map_provider
from core.exceptions import ValidationException
from core.mapping.google_provider import GoogleProvider
from core.mapping.interfaces import MappingProvider
from core.mapping.local_provider import LocalProvider

logger = logging.getLogger(__name__)
_provider: MappingProvider | None = None


def clear_provider_cache() -> None:
    """Forget the cached provider so environment changes take effect."""
    global _provider
    _provider = None


def is_google_map_provider() -> bool:
    """Return True when the map provider is configured to Google."""
    try:
        return get_map_provider() == MapProvider.GOOGLE
    except RuntimeError as exc:
        raise ValidationException(str(exc), {"code": "provider_invalid"}) from exc


def build_mapping_provider() -> MappingProvider:
    """
    Instantiate the provider selected by MAP_PROVIDER.

    MapProvider.GOOGLE requires a non-blank GOOGLE_MAPS_API_KEY. Otherwise,
    defaults to LocalProvider (Valhalla + Nominatim).
    """
    if is_google_map_provider():
        api_key = get_google_maps_api_key()
        if not api_key:
            raise ValidationException(
                "MAP_PROVIDER is set to google, but GOOGLE_MAPS_API_KEY is missing "
                "or blank. Set a valid key or switch MAP_PROVIDER to self_hosted.",
                {"code": "google_key_missing"},
            )
        logger.info("Using Google Maps Platform mapping provider")
        return GoogleProvider(api_key=api_key)

    logger.info("Using self-hosted Nominatim/Valhalla mapping provider")
    return LocalProvider()


def get_mapping_provider() -> MappingProvider:
    """Return the process-wide provider, building it on first use."""
    global _provider
    if _provider is None:
        _provider = build_mapping_provider()
    return _provider
