"""Pydantic request/response models for compliance endpoints."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from ..models.domain import ComplianceEvent, Coordinate, ExclusionZone, VerificationRecord


class CoordinateModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    def to_domain(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)


class VerificationRecordModel(BaseModel):
    identity_id: str
    date_of_birth: Optional[date] = None
    age_verified: bool = False
    kyc_completed: bool = False
    location_verified: bool = False
    last_verified_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, record: VerificationRecord) -> "VerificationRecordModel":
        return cls(
            identity_id=record.identity_id,
            date_of_birth=record.date_of_birth,
            age_verified=record.age_verified,
            kyc_completed=record.kyc_completed,
            location_verified=record.location_verified,
            last_verified_at=record.last_verified_at,
        )


class OrderEligibilityRequest(BaseModel):
    identity_id: str = Field(..., min_length=1, description="Identity whose stored verification record is checked.")
    location: CoordinateModel
    regulated_volume_ml: int = Field(..., ge=0, description="Regulated volume in the order (ml).")
    now: Optional[datetime] = Field(default=None, description="Evaluation time; defaults to the server clock.")
    order_id: Optional[str] = None


class ComplianceEventModel(BaseModel):
    event_id: str
    event_type: str
    identity_id: str
    outcome: str
    detail: dict[str, Any]
    occurred_at: datetime
    order_id: Optional[str] = None

    @classmethod
    def from_domain(cls, event: ComplianceEvent) -> "ComplianceEventModel":
        return cls.model_validate(event.to_record())


class VerdictResponse(BaseModel):
    allowed: bool
    reasons: List[str]
    messages: List[str]
    checked_at: datetime
    events: List[ComplianceEventModel]


class ExclusionZoneModel(BaseModel):
    zone_id: str
    name: str
    category: str
    latitude: float
    longitude: float
    radius_meters: float
    description: str = ""

    @classmethod
    def from_domain(cls, zone: ExclusionZone) -> "ExclusionZoneModel":
        return cls(
            zone_id=zone.zone_id,
            name=zone.name,
            category=zone.category.value,
            latitude=zone.center.latitude,
            longitude=zone.center.longitude,
            radius_meters=zone.radius_meters,
            description=zone.description,
        )


class DeliveryZoneModel(BaseModel):
    zone_id: str
    name: str
    active: bool
    restrictions: List[str]
    boundary: List[CoordinateModel]


class ZonesResponse(BaseModel):
    exclusion_zones: List[ExclusionZoneModel]
    delivery_zones: List[DeliveryZoneModel]


class LocationRequest(CoordinateModel):
    identity_id: Optional[str] = Field(default=None, description="Record the check against this identity.")
    address: Optional[str] = None


class LocationResponse(BaseModel):
    eligible: bool
    message: str
    violations: List[ExclusionZoneModel]
    delivery_zone: Optional[str] = None
    restrictions: List[str]
    nearest_exclusion_id: Optional[str] = None
    nearest_exclusion_meters: Optional[float] = None
    address: Optional[str] = None
    event: Optional[ComplianceEventModel] = None


class AgeRequest(BaseModel):
    date_of_birth: str = Field(..., description="ISO-8601 birth date.")
    identity_id: Optional[str] = None
    document_number: Optional[str] = Field(default=None, pattern=r"^\d{12}$")
    minimum_age: Optional[int] = Field(default=None, ge=0)


class AgeResponse(BaseModel):
    age: int
    eligible: bool
    minimum_age: int
    message: str
    event: Optional[ComplianceEventModel] = None


class KycRequest(BaseModel):
    identity_id: str = Field(..., min_length=1)


class KycResponse(BaseModel):
    complete: bool
    document_verified: bool
    video_kyc_completed: bool
    biometric_verified: bool
    documents_uploaded: List[str]
    record: VerificationRecordModel
    event: ComplianceEventModel


class DeliveryWindowResponse(BaseModel):
    zone_id: Optional[str] = None
    open_now: bool
    start_hour: int
    end_hour: int
    next_window: Optional[str] = None


class ExciseRequest(BaseModel):
    product_type: str
    base_price: float = Field(..., ge=0)


class ExciseResponse(BaseModel):
    excise_tax: float
    gst: float
    total_tax: float


class ComplianceReportResponse(BaseModel):
    start: datetime
    end: datetime
    total_events: int
    success_rate: float
    events_by_type: dict[str, int]
    violations: List[ComplianceEventModel]
    recommendations: List[str]
