"""Domain models for zones, verification state, ledger rows and verdicts."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, Optional

from ..errors import InvalidCoordinate, InvalidGeometry


class ExclusionCategory(str, Enum):
    SCHOOL = "school"
    PLACE_OF_WORSHIP = "place_of_worship"
    GOVERNMENT = "government"
    HOSPITAL = "hospital"
    OTHER = "other"


class EventType(str, Enum):
    AGE_CHECK = "age_check"
    LOCATION_CHECK = "location_check"
    KYC_CHECK = "kyc_check"
    VOLUME_CHECK = "volume_check"
    ORDER_ADMISSION = "order_admission"


class Outcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A WGS84 position in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        for name, value, bound in (("latitude", self.latitude, 90.0), ("longitude", self.longitude, 180.0)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidCoordinate(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value) or abs(value) > bound:
                raise InvalidCoordinate(f"{name} {value!r} is outside [-{bound:g}, {bound:g}]")

    def as_dict(self) -> dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True, slots=True)
class ExclusionZone:
    """Circular area around a sensitive site where delivery is always forbidden."""

    zone_id: str
    name: str
    category: ExclusionCategory
    center: Coordinate
    radius_meters: float
    description: str = ""

    def __post_init__(self) -> None:
        if not math.isfinite(self.radius_meters) or self.radius_meters < 0:
            raise InvalidGeometry(f"Exclusion zone '{self.zone_id}' has invalid radius {self.radius_meters!r}")


@dataclass(frozen=True, slots=True)
class DeliveryZone:
    """Polygonal service area with its own restriction codes."""

    zone_id: str
    name: str
    boundary: tuple[Coordinate, ...]
    active: bool = True
    restrictions: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if len(self.boundary) < 3:
            raise InvalidGeometry(
                f"Delivery zone '{self.zone_id}' needs at least 3 boundary points, got {len(self.boundary)}"
            )


@dataclass(frozen=True, slots=True)
class VerificationRecord:
    """Verification state of one identity, as kept by the record store."""

    identity_id: str
    date_of_birth: Optional[date]
    age_verified: bool = False
    kyc_completed: bool = False
    location_verified: bool = False
    last_verified_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class VolumeLedgerEntry:
    identity_id: str
    day: date
    cumulative_ml: int


@dataclass(frozen=True, slots=True)
class ComplianceEvent:
    """One append-only audit record of a compliance decision."""

    event_id: str
    event_type: EventType
    identity_id: str
    outcome: Outcome
    detail: Mapping[str, Any]
    occurred_at: datetime
    order_id: Optional[str] = None

    def to_record(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "identity_id": self.identity_id,
            "outcome": self.outcome.value,
            "detail": dict(self.detail),
            "occurred_at": self.occurred_at.isoformat(),
            "order_id": self.order_id,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ComplianceEvent":
        occurred_at = record["occurred_at"]
        if isinstance(occurred_at, str):
            occurred_at = datetime.fromisoformat(occurred_at)
        return cls(
            event_id=str(record["event_id"]),
            event_type=EventType(record["event_type"]),
            identity_id=str(record["identity_id"]),
            outcome=Outcome(record["outcome"]),
            detail=dict(record.get("detail") or {}),
            occurred_at=occurred_at,
            order_id=record.get("order_id"),
        )


@dataclass(frozen=True, slots=True)
class ComplianceVerdict:
    """Admit/deny decision for an order with every failing reason."""

    allowed: bool
    reasons: tuple[str, ...]
    checked_at: datetime
    events: tuple[ComplianceEvent, ...] = field(default=(), compare=False, repr=False)
