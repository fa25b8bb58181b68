"""Geospatial helper functions."""

from __future__ import annotations

import functools
import math
from typing import Sequence

from shapely.geometry import Point, Polygon

from ..errors import InvalidGeometry
from ..models.domain import Coordinate

EARTH_RADIUS_M = 6_371_000.0


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates using the Haversine formula."""

    if a == b:
        return 0.0
    phi1, phi2 = math.radians(a.latitude), math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def bearing_degrees(a: Coordinate, b: Coordinate) -> float:
    """Calculate the initial bearing from a to b."""

    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    delta_lambda = math.radians(b.longitude - a.longitude)
    y = math.sin(delta_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(delta_lambda)
    bearing = math.degrees(math.atan2(y, x))
    return (bearing + 360) % 360


def to_polygon(boundary: Sequence[Coordinate]) -> Polygon:
    """Build a shapely polygon from boundary coordinates, rejecting degenerate rings.

    Vertices are laid out as (lng, lat) so that longitude is the sweep axis.
    """

    return _cached_polygon(tuple(boundary))


@functools.lru_cache(maxsize=256)
def _cached_polygon(boundary: tuple[Coordinate, ...]) -> Polygon:
    if len(boundary) < 3:
        raise InvalidGeometry(f"Polygon needs at least 3 points, got {len(boundary)}")
    try:
        polygon = Polygon([(coord.longitude, coord.latitude) for coord in boundary])
    except ValueError as exc:
        raise InvalidGeometry(f"Polygon boundary is malformed: {exc}") from exc
    if polygon.area == 0:
        raise InvalidGeometry("Polygon points are collinear or repeated.")
    if not polygon.is_valid:
        raise InvalidGeometry("Polygon boundary is self-intersecting.")
    return polygon


def contains_point(polygon: Sequence[Coordinate], point: Coordinate) -> bool:
    """Return True if the point lies strictly inside the polygon.

    Points on an edge or vertex are treated as outside.
    """

    return to_polygon(polygon).contains(Point(point.longitude, point.latitude))
