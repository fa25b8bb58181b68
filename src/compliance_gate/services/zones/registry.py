"""Read-only registry of exclusion and delivery zones."""

from __future__ import annotations

import logging
from typing import Iterable, Protocol, Sequence

from ...models.domain import DeliveryZone, ExclusionZone
from ..geospatial import to_polygon

logger = logging.getLogger(__name__)


class ZoneRegistry(Protocol):
    """Contract every zone source satisfies at request time."""

    def list_exclusion_zones(self) -> Sequence[ExclusionZone]:
        ...

    def list_active_delivery_zones(self) -> Sequence[DeliveryZone]:
        ...


class StaticZoneRegistry:
    """Zone registry backed by reference data loaded once at startup.

    Delivery zone boundaries are validated on construction so that a malformed
    polygon fails the load rather than a later request. Registry order is kept;
    it is the tie-break when delivery zones overlap.
    """

    def __init__(
        self,
        exclusion_zones: Iterable[ExclusionZone] = (),
        delivery_zones: Iterable[DeliveryZone] = (),
    ) -> None:
        self._exclusion_zones = tuple(exclusion_zones)
        self._delivery_zones = tuple(delivery_zones)
        for zone in self._delivery_zones:
            to_polygon(zone.boundary)
        logger.info(
            f"Zone registry ready: {len(self._exclusion_zones)} exclusion zones, "
            f"{len(self._delivery_zones)} delivery zones ({len(self.list_active_delivery_zones())} active)"
        )

    def list_exclusion_zones(self) -> tuple[ExclusionZone, ...]:
        return self._exclusion_zones

    def list_delivery_zones(self) -> tuple[DeliveryZone, ...]:
        return self._delivery_zones

    def list_active_delivery_zones(self) -> tuple[DeliveryZone, ...]:
        return tuple(zone for zone in self._delivery_zones if zone.active)
