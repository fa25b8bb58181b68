import math

import pytest

from compliance_gate.errors import InvalidCoordinate, InvalidGeometry
from compliance_gate.models.domain import Coordinate
from compliance_gate.services.geospatial import (
    EARTH_RADIUS_M,
    bearing_degrees,
    contains_point,
    distance_meters,
)

SQUARE = (
    Coordinate(0, 0),
    Coordinate(0, 1),
    Coordinate(1, 1),
    Coordinate(1, 0),
)


def _north_of(origin: Coordinate, meters: float) -> Coordinate:
    return Coordinate(origin.latitude + math.degrees(meters / EARTH_RADIUS_M), origin.longitude)


@pytest.mark.parametrize(
    "a, b",
    [
        (Coordinate(27.3314, 88.6138), Coordinate(27.3389, 88.6065)),
        (Coordinate(-33.8688, 151.2093), Coordinate(51.5074, -0.1278)),
        (Coordinate(0, 179.9), Coordinate(0, -179.9)),
    ],
)
def test_distance_is_symmetric(a: Coordinate, b: Coordinate) -> None:
    assert distance_meters(a, b) == pytest.approx(distance_meters(b, a))


def test_distance_to_self_is_zero() -> None:
    point = Coordinate(27.3314, 88.6138)
    assert distance_meters(point, point) == 0


def test_distance_along_meridian_matches_arc_length() -> None:
    origin = Coordinate(27.0, 88.0)
    assert distance_meters(origin, _north_of(origin, 501)) == pytest.approx(501, abs=1e-6)


def test_distance_known_value() -> None:
    # One degree of latitude on a 6371 km sphere.
    assert distance_meters(Coordinate(0, 0), Coordinate(1, 0)) == pytest.approx(111_194.93, rel=1e-6)


def test_bearing_due_east() -> None:
    assert bearing_degrees(Coordinate(0, 0), Coordinate(0, 1)) == pytest.approx(90.0)


def test_square_contains_center_but_not_outside_point() -> None:
    assert contains_point(SQUARE, Coordinate(0.5, 0.5)) is True
    assert contains_point(SQUARE, Coordinate(2, 2)) is False


def test_points_on_boundary_are_outside() -> None:
    assert contains_point(SQUARE, Coordinate(0, 0.5)) is False
    assert contains_point(SQUARE, Coordinate(1, 1)) is False


def test_polygon_with_two_points_is_rejected() -> None:
    with pytest.raises(InvalidGeometry):
        contains_point((Coordinate(0, 0), Coordinate(1, 1)), Coordinate(0.5, 0.5))


def test_self_intersecting_polygon_is_rejected() -> None:
    bowtie = (Coordinate(0, 0), Coordinate(1, 1), Coordinate(0, 1), Coordinate(1, 0))
    with pytest.raises(InvalidGeometry):
        contains_point(bowtie, Coordinate(0.5, 0.5))


@pytest.mark.parametrize("lat, lon", [(91, 0), (0, 181), (float("nan"), 0), ("27.3", 88.6)])
def test_malformed_coordinates_are_rejected(lat, lon) -> None:
    with pytest.raises(InvalidCoordinate):
        Coordinate(lat, lon)
