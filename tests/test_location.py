import math

import pytest

from compliance_gate.errors import InvalidGeometry
from compliance_gate.models.domain import Coordinate, DeliveryZone, ExclusionCategory, ExclusionZone
from compliance_gate.services.geospatial import EARTH_RADIUS_M, distance_meters
from compliance_gate.services.location import evaluate_location
from compliance_gate.services.zones.registry import StaticZoneRegistry


def _square(zone_id: str, lat0: float, lon0: float, lat1: float, lon1: float, **kwargs) -> DeliveryZone:
    return DeliveryZone(
        zone_id=zone_id,
        name=zone_id.replace("_", " ").title(),
        boundary=(
            Coordinate(lat0, lon0),
            Coordinate(lat1, lon0),
            Coordinate(lat1, lon1),
            Coordinate(lat0, lon1),
        ),
        **kwargs,
    )


def _exclusion(zone_id: str, lat: float, lon: float, radius: float = 500, category=ExclusionCategory.SCHOOL) -> ExclusionZone:
    return ExclusionZone(
        zone_id=zone_id,
        name=zone_id,
        category=category,
        center=Coordinate(lat, lon),
        radius_meters=radius,
    )


SCHOOL = _exclusion("school_01", 27.3314, 88.6138)
MONASTERY = _exclusion("temple_01", 27.3389, 88.6065, category=ExclusionCategory.PLACE_OF_WORSHIP)
CENTRAL = _square("gangtok_central", 27.30, 88.58, 27.36, 88.66, restrictions=frozenset({"cutoff_22:00"}))


def _registry(*deliveries: DeliveryZone, exclusions=(SCHOOL, MONASTERY)) -> StaticZoneRegistry:
    return StaticZoneRegistry(exclusion_zones=exclusions, delivery_zones=deliveries or (CENTRAL,))


def test_point_inside_zone_away_from_exclusions_is_eligible() -> None:
    verdict = evaluate_location(Coordinate(27.3450, 88.6400), _registry())

    assert verdict.eligible is True
    assert verdict.delivery_zone == CENTRAL
    assert verdict.restrictions == frozenset({"cutoff_22:00"})
    assert verdict.restricted_zone_violations == ()
    assert verdict.nearest_exclusion is not None
    assert verdict.message() == "Location verified for delivery"


def test_point_at_zone_center_is_a_violation_even_with_zero_radius() -> None:
    pinpoint = _exclusion("pin", 27.3450, 88.6400, radius=0)
    verdict = evaluate_location(Coordinate(27.3450, 88.6400), _registry(exclusions=(pinpoint,)))

    assert verdict.eligible is False
    assert verdict.restricted_zone_violations == (pinpoint,)


def test_point_one_meter_beyond_radius_is_not_a_violation() -> None:
    offset = math.degrees(501 / EARTH_RADIUS_M)
    point = Coordinate(SCHOOL.center.latitude + offset, SCHOOL.center.longitude)
    assert distance_meters(point, SCHOOL.center) == pytest.approx(501)

    verdict = evaluate_location(point, _registry(exclusions=(SCHOOL,)))

    assert verdict.restricted_zone_violations == ()
    assert verdict.eligible is True


def test_all_overlapping_exclusion_zones_are_reported() -> None:
    secretariat = _exclusion("govt_01", 27.3314, 88.6138, radius=300, category=ExclusionCategory.GOVERNMENT)
    verdict = evaluate_location(Coordinate(27.3315, 88.6139), _registry(exclusions=(SCHOOL, MONASTERY, secretariat)))

    assert [zone.zone_id for zone in verdict.restricted_zone_violations] == ["school_01", "govt_01"]
    assert verdict.delivery_zone == CENTRAL
    assert verdict.eligible is False
    assert verdict.nearest_exclusion is None
    assert verdict.message() == "Delivery not allowed near government, school"


def test_point_outside_every_zone_is_a_normal_negative_verdict() -> None:
    verdict = evaluate_location(Coordinate(28.6139, 77.2090), _registry())

    assert verdict.eligible is False
    assert verdict.delivery_zone is None
    assert verdict.restrictions == frozenset()
    assert verdict.message() == "Location is outside our delivery service area"


def test_first_matching_zone_wins_when_zones_overlap() -> None:
    first = _square("first", 27.30, 88.58, 27.36, 88.66)
    second = _square("second", 27.33, 88.62, 27.40, 88.70)

    verdict = evaluate_location(Coordinate(27.3450, 88.6400), _registry(first, second))

    assert verdict.delivery_zone == first


def test_inactive_zones_are_ignored() -> None:
    closed = _square("closed", 27.30, 88.58, 27.36, 88.66, active=False)
    registry = _registry(closed)

    assert registry.list_active_delivery_zones() == ()
    assert evaluate_location(Coordinate(27.3450, 88.6400), registry).delivery_zone is None


def test_registry_rejects_degenerate_boundary() -> None:
    flat = DeliveryZone(
        zone_id="flat",
        name="Flat",
        boundary=(Coordinate(0, 0), Coordinate(0, 1), Coordinate(0, 2)),
    )
    with pytest.raises(InvalidGeometry):
        StaticZoneRegistry(delivery_zones=(flat,))


def test_delivery_zone_needs_three_points() -> None:
    with pytest.raises(InvalidGeometry):
        DeliveryZone(zone_id="line", name="Line", boundary=(Coordinate(0, 0), Coordinate(1, 1)))
