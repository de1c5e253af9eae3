from unittest.mock import AsyncMock

import pytest

from core.exceptions import ExternalServiceException
from core.http.nominatim import NominatimClient
from core.spatial import Coordinate, Region
from tests.http_fakes import FakeResponse, FakeSession


def _patch_session(monkeypatch: pytest.MonkeyPatch, session: FakeSession) -> None:
    monkeypatch.setattr(
        "core.http.nominatim.get_session",
        AsyncMock(return_value=session),
    )


@pytest.mark.asyncio
async def test_nominatim_search_normalizes_results(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    response = FakeResponse(
        status=200,
        json_data=[
            {
                "display_name": "Blue Bottle Coffee, Mint Plaza, San Francisco",
                "lon": "-122.4075",
                "lat": "37.7825",
                "category": "amenity",
                "type": "cafe",
                "name": "Blue Bottle Coffee",
                "osm_id": 123,
                "osm_type": "node",
                "address": {"city": "San Francisco"},
                "importance": 0.4,
                "boundingbox": ["37.78", "37.79", "-122.41", "-122.40"],
            },
        ],
    )
    session = FakeSession(get_responses=[response])
    _patch_session(monkeypatch, session)

    client = NominatimClient()
    results = await client.search("coffee", limit=1)

    assert results == [
        {
            "place_id": "node/123",
            "name": "Blue Bottle Coffee",
            "display_name": "Blue Bottle Coffee, Mint Plaza, San Francisco",
            "lat": 37.7825,
            "lon": -122.4075,
            "category": "amenity",
            "address": {"city": "San Francisco"},
            "source": "nominatim",
        },
    ]
    method, url, kwargs = session.requests[0]
    assert method == "GET"
    assert url == "http://nominatim.test/search"
    assert kwargs["params"]["q"] == "coffee"
    assert kwargs["params"]["format"] == "jsonv2"
    assert kwargs["params"]["limit"] == 1
    assert "viewbox" not in kwargs["params"]


@pytest.mark.asyncio
async def test_nominatim_search_biases_to_region(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    session = FakeSession(get_responses=[FakeResponse(status=200, json_data=[])])
    _patch_session(monkeypatch, session)
    region = Region(
        center=Coordinate(lat=37.0, lon=-122.0),
        latitude_delta=0.2,
        longitude_delta=0.4,
    )

    client = NominatimClient()
    results = await client.search("coffee", bias_region=region)

    assert results == []
    params = session.last_params()
    west, north, east, south = (float(v) for v in params["viewbox"].split(","))
    assert west == pytest.approx(-122.2)
    assert north == pytest.approx(37.1)
    assert east == pytest.approx(-121.8)
    assert south == pytest.approx(36.9)


@pytest.mark.asyncio
async def test_nominatim_viewbox_is_clipped_at_the_antimeridian(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    session = FakeSession(get_responses=[FakeResponse(status=200, json_data=[])])
    _patch_session(monkeypatch, session)
    region = Region(
        center=Coordinate(lat=-17.0, lon=179.9),
        latitude_delta=0.2,
        longitude_delta=0.4,
    )

    await NominatimClient().search("harbour", bias_region=region)

    west, _, east, _ = (float(v) for v in session.last_params()["viewbox"].split(","))
    assert west == pytest.approx(179.7)
    assert east == 180.0


@pytest.mark.asyncio
async def test_nominatim_search_skips_results_without_coordinates(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    response = FakeResponse(
        status=200,
        json_data=[
            {"display_name": "Nowhere", "place_id": 1},
            {"display_name": "Somewhere", "place_id": 2, "lat": "1.5", "lon": "2.5"},
        ],
    )
    _patch_session(monkeypatch, FakeSession(get_responses=[response]))

    results = await NominatimClient().search("where")

    assert [r["display_name"] for r in results] == ["Somewhere"]
    assert results[0]["place_id"] == "2"


@pytest.mark.asyncio
async def test_nominatim_search_raises_on_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    response = FakeResponse(status=500, text_data="boom")
    _patch_session(monkeypatch, FakeSession(get_responses=[response]))

    client = NominatimClient()

    with pytest.raises(ExternalServiceException) as raised:
        await client.search("Waco")

    assert "Nominatim search" in raised.value.message
    assert raised.value.details["status"] == 500


@pytest.mark.asyncio
async def test_nominatim_search_rejects_non_list_payload(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    response = FakeResponse(status=200, json_data={"error": "nope"})
    _patch_session(monkeypatch, FakeSession(get_responses=[response]))

    with pytest.raises(ExternalServiceException):
        await NominatimClient().search("Waco")

