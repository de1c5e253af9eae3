import pytest
from pydantic import ValidationError

from core.polyline import decode_polyline
from core.spatial import (
    Coordinate,
    MapRect,
    Region,
    bounding_rect,
    line_length_meters,
    parse_lon_lat,
)

APPLE_PARK = Coordinate(lat=37.3364, lon=-122.0090)


def test_coordinate_rejects_out_of_range() -> None:
    with pytest.raises(ValidationError):
        Coordinate(lat=91.0, lon=0.0)
    with pytest.raises(ValidationError):
        Coordinate(lat=0.0, lon=-181.0)


def test_region_from_meters_spans_requested_distance() -> None:
    region = Region.from_meters(APPLE_PARK, 10_000, 10_000)

    # A degree of latitude is about 111 km; longitude shrinks with cos(lat)
    assert region.latitude_delta == pytest.approx(0.09, abs=0.001)
    assert region.longitude_delta == pytest.approx(0.113, abs=0.002)
    assert region.center == APPLE_PARK
    assert region.radius_meters() == pytest.approx(7071, rel=0.01)


def test_region_bounds_and_contains() -> None:
    region = Region(center=APPLE_PARK, latitude_delta=0.2, longitude_delta=0.4)

    bounds = region.bounds
    assert bounds.south == pytest.approx(37.2364)
    assert bounds.north == pytest.approx(37.4364)
    assert bounds.west == pytest.approx(-122.209)
    assert bounds.east == pytest.approx(-121.809)
    assert region.contains(Coordinate(lat=37.3, lon=-122.0))
    assert not region.contains(Coordinate(lat=38.0, lon=-122.0))


def test_region_from_meters_across_the_antimeridian() -> None:
    region = Region.from_meters(Coordinate(lat=0.0, lon=179.99), 10_000, 10_000)

    assert region.longitude_delta == pytest.approx(0.0898, abs=0.001)
    assert region.latitude_delta == pytest.approx(0.0904, abs=0.001)
    # Clipped on the far side rather than wrapped
    assert region.bounds.east == 180.0
    assert region.bounds.west == pytest.approx(179.945, abs=0.001)


def test_region_from_meters_near_the_pole() -> None:
    center = Coordinate(lat=89.99, lon=10.0)
    region = Region.from_meters(center, 10_000, 10_000)

    assert 0 < region.latitude_delta <= 180.0
    assert region.bounds.north == 90.0
    assert region.bounds.south == pytest.approx(89.962, abs=0.002)
    assert 0 < region.longitude_delta <= 360.0


def test_region_requires_positive_span() -> None:
    with pytest.raises(ValidationError):
        Region(center=APPLE_PARK, latitude_delta=0.0, longitude_delta=0.1)


def test_parse_lon_lat() -> None:
    assert parse_lon_lat([-122.0, 37.0]) == Coordinate(lat=37.0, lon=-122.0)
    assert parse_lon_lat(["x", 37.0]) is None
    assert parse_lon_lat([200.0, 37.0]) is None
    assert parse_lon_lat([1.0]) is None


def test_bounding_rect_ignores_invalid_points() -> None:
    rect = bounding_rect([[-122.0, 37.3], [-121.9, 37.4], ["bad"], [-122.1, 37.35]])

    assert rect == MapRect(west=-122.1, south=37.3, east=-121.9, north=37.4)
    assert rect.center.lat == pytest.approx(37.35)
    assert rect.center.lon == pytest.approx(-122.0)
    assert bounding_rect([]) is None


def test_line_length_meters() -> None:
    # One degree of longitude along the equator
    assert line_length_meters([[0.0, 0.0], [1.0, 0.0]]) == pytest.approx(111_319, rel=0.001)
    assert line_length_meters([[0.0, 0.0]]) == 0.0


def test_decode_polyline_precision5() -> None:
    coords = decode_polyline("_p~iF~ps|U_ulLnnqC_mqNvxq`@")

    assert coords == [
        pytest.approx([-120.2, 38.5]),
        pytest.approx([-120.95, 40.7]),
        pytest.approx([-126.453, 43.252]),
    ]


def test_decode_polyline_rejects_truncated_input() -> None:
    with pytest.raises(ValueError):
        decode_polyline("_p~iF~ps|U_")


def test_decode_polyline_empty() -> None:
    assert decode_polyline("") == []
