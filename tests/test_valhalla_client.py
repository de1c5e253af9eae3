from unittest.mock import AsyncMock

import pytest

from core.exceptions import ExternalServiceException
from core.http.valhalla import ValhallaClient
from tests.http_fakes import FakeResponse, FakeSession


def _patch_session(monkeypatch: pytest.MonkeyPatch, session: FakeSession) -> None:
    monkeypatch.setattr(
        "core.http.valhalla.get_session",
        AsyncMock(return_value=session),
    )


@pytest.mark.asyncio
async def test_valhalla_route_requires_two_locations() -> None:
    client = ValhallaClient()

    with pytest.raises(ExternalServiceException) as raised:
        await client.route([[0.0, 0.0]])

    assert "at least two locations" in raised.value.message


@pytest.mark.asyncio
async def test_valhalla_route_posts_locations(monkeypatch: pytest.MonkeyPatch) -> None:
    response = FakeResponse(
        status=200,
        method="POST",
        json_data={
            "trip": {
                "summary": {"length": 2.5, "time": 420},
                "legs": [
                    {
                        "shape": {
                            "type": "LineString",
                            "coordinates": [[-122.0, 37.3], [-122.1, 37.4]],
                        },
                    },
                ],
            },
        },
    )
    session = FakeSession(post_responses=[response])
    _patch_session(monkeypatch, session)

    route = await ValhallaClient().route([(-122.0, 37.3), (-122.1, 37.4)])

    assert route == {
        "geometry": {
            "type": "LineString",
            "coordinates": [[-122.0, 37.3], [-122.1, 37.4]],
        },
        "duration_seconds": 420,
        "distance_meters": 2500.0,
        "source": "valhalla",
    }
    method, url, kwargs = session.requests[0]
    assert method == "POST"
    assert url == "http://valhalla.test/route"
    assert kwargs["json"]["locations"] == [
        {"lon": -122.0, "lat": 37.3},
        {"lon": -122.1, "lat": 37.4},
    ]
    assert kwargs["json"]["costing"] == "auto"


@pytest.mark.asyncio
async def test_valhalla_route_returns_none_when_no_path(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    response = FakeResponse(
        status=400,
        method="POST",
        text_data='{"error_code": 442, "error": "No path could be found for input"}',
    )
    _patch_session(monkeypatch, FakeSession(post_responses=[response]))

    route = await ValhallaClient().route([(0.0, 0.0), (50.0, 50.0)])

    assert route is None


@pytest.mark.asyncio
async def test_valhalla_route_raises_on_other_errors(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    response = FakeResponse(
        status=400,
        method="POST",
        text_data='{"error_code": 171, "error": "No suitable edges near location"}',
    )
    _patch_session(monkeypatch, FakeSession(post_responses=[response]))

    with pytest.raises(ExternalServiceException) as raised:
        await ValhallaClient().route([(0.0, 0.0), (1.0, 1.0)])

    assert raised.value.details["status"] == 400


def test_normalize_route_response_extracts_geometry() -> None:
    data = {
        "trip": {
            "legs": [{"summary": {"length": 1.2, "time": 300}}],
            "shape": {"coordinates": [[0.0, 0.0], [1.0, 1.0]]},
        },
    }

    normalized = ValhallaClient._normalize_route_response(data)

    assert normalized["geometry"]["type"] == "LineString"
    assert normalized["duration_seconds"] == 300
    assert normalized["distance_meters"] == pytest.approx(1200)


def test_normalize_route_response_without_shape() -> None:
    normalized = ValhallaClient._normalize_route_response(
        {"trip": {"summary": {"length": 0.5, "time": 60}}},
    )

    assert normalized["geometry"] is None
    assert normalized["distance_meters"] == pytest.approx(500)


def test_normalize_route_response_decodes_polyline5() -> None:
    data = {
        "trip": {
            "shape_format": "polyline5",
            "summary": {"length": 10.0, "time": 600},
            "legs": [{"shape": "_p~iF~ps|U_ulLnnqC_mqNvxq`@"}],
        },
    }

    coords = ValhallaClient._normalize_route_response(data)["geometry"]["coordinates"]

    assert coords[0] == pytest.approx([-120.2, 38.5])
    assert coords[1] == pytest.approx([-120.95, 40.7])


def test_normalize_route_response_joins_legs() -> None:
    data = {
        "trip": {
            "summary": {"length": 3.0, "time": 400},
            "legs": [
                {"shape": {"coordinates": [[0.0, 0.0], [1.0, 1.0]]}},
                {"shape": {"coordinates": [[1.0, 1.0], [2.0, 1.5]]}},
            ],
        },
    }

    normalized = ValhallaClient._normalize_route_response(data)

    assert normalized["geometry"]["coordinates"] == [[0.0, 0.0], [1.0, 1.0], [2.0, 1.5]]
