"""Delivery eligibility of a single point against the zone registry."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..models.domain import Coordinate, DeliveryZone, ExclusionZone
from .geospatial import contains_point, distance_meters
from .zones.registry import ZoneRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NearestExclusion:
    zone: ExclusionZone
    distance_meters: float


@dataclass(frozen=True, slots=True)
class LocationVerdict:
    eligible: bool
    restricted_zone_violations: tuple[ExclusionZone, ...]
    delivery_zone: Optional[DeliveryZone]
    restrictions: frozenset[str] = field(default_factory=frozenset)
    nearest_exclusion: Optional[NearestExclusion] = None

    @property
    def in_restricted_zone(self) -> bool:
        return bool(self.restricted_zone_violations)

    @property
    def in_service_area(self) -> bool:
        return self.delivery_zone is not None

    def message(self) -> str:
        if self.restricted_zone_violations:
            categories = sorted({zone.category.value.replace("_", " ") for zone in self.restricted_zone_violations})
            return f"Delivery not allowed near {', '.join(categories)}"
        if self.delivery_zone is None:
            return "Location is outside our delivery service area"
        return "Location verified for delivery"

    def to_detail(self) -> dict:
        detail = {
            "eligible": self.eligible,
            "violations": [zone.zone_id for zone in self.restricted_zone_violations],
            "delivery_zone": self.delivery_zone.zone_id if self.delivery_zone else None,
            "restrictions": sorted(self.restrictions),
        }
        if self.nearest_exclusion is not None:
            detail["nearest_exclusion"] = {
                "zone_id": self.nearest_exclusion.zone.zone_id,
                "distance_meters": round(self.nearest_exclusion.distance_meters, 1),
            }
        return detail


def evaluate_location(point: Coordinate, zones: ZoneRegistry) -> LocationVerdict:
    """Check a point against every exclusion zone and the active delivery zones.

    All exclusion zones are scanned so the verdict lists every violation. The
    first active delivery zone (registry order) that contains the point is the
    assigned zone.
    """

    violations: list[ExclusionZone] = []
    nearest: Optional[NearestExclusion] = None
    for zone in zones.list_exclusion_zones():
        distance = distance_meters(point, zone.center)
        if distance <= zone.radius_meters:
            violations.append(zone)
        if nearest is None or distance < nearest.distance_meters:
            nearest = NearestExclusion(zone=zone, distance_meters=distance)

    assigned: Optional[DeliveryZone] = None
    for zone in zones.list_active_delivery_zones():
        if contains_point(zone.boundary, point):
            assigned = zone
            break

    eligible = not violations and assigned is not None
    logger.debug(
        f"Location ({point.latitude:.5f}, {point.longitude:.5f}): {len(violations)} exclusion violations, "
        f"delivery zone {assigned.zone_id if assigned else None}"
    )
    return LocationVerdict(
        eligible=eligible,
        restricted_zone_violations=tuple(violations),
        delivery_zone=assigned,
        restrictions=assigned.restrictions if assigned else frozenset(),
        nearest_exclusion=None if violations else nearest,
    )
