import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from network_blocker import install_network_blocker

from core.http.circuit_breaker import (
    google_breaker,
    nominatim_breaker,
    valhalla_breaker,
)
from core.mapping.factory import clear_provider_cache

_CONFIG_ENV = (
    "MAP_PROVIDER",
    "GOOGLE_MAPS_API_KEY",
    "MAP_ORIGIN_LAT",
    "MAP_ORIGIN_LON",
    "MAP_DEFAULT_SPAN_METERS",
    "MAP_HOME_TITLE",
    "MAP_SEARCH_LIMIT",
    "HTTP_MAX_RETRIES",
)


@pytest.fixture(autouse=True)
def _default_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _CONFIG_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("NOMINATIM_BASE_URL", "http://nominatim.test")
    monkeypatch.setenv("VALHALLA_BASE_URL", "http://valhalla.test")
    install_network_blocker(monkeypatch)


@pytest.fixture(autouse=True)
def _fresh_service_state():
    for breaker in (nominatim_breaker, valhalla_breaker, google_breaker):
        breaker.reset()
    clear_provider_cache()
    yield
    clear_provider_cache()
