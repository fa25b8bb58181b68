"""API routes for compliance checks and order admission."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...persistence.audit_sink import AuditSink
from ...schemas.compliance import (
    AgeRequest,
    AgeResponse,
    ComplianceEventModel,
    CoordinateModel,
    DeliveryWindowResponse,
    DeliveryZoneModel,
    ExciseRequest,
    ExciseResponse,
    ExclusionZoneModel,
    KycRequest,
    KycResponse,
    LocationRequest,
    LocationResponse,
    OrderEligibilityRequest,
    VerdictResponse,
    VerificationRecordModel,
    ZonesResponse,
)
from ...services.delivery_window import check_delivery_window
from ...services.eligibility.service import ComplianceService
from ...services.excise import calculate_excise_tax
from ..dependencies import get_audit_sink, get_compliance_service

router = APIRouter(prefix="/compliance", tags=["compliance"])


def _now(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if value.tzinfo is None:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="now must include a UTC offset")
    return value


def _verdict_response(service: ComplianceService, verdict) -> VerdictResponse:
    return VerdictResponse(
        allowed=verdict.allowed,
        reasons=[str(getattr(reason, "value", reason)) for reason in verdict.reasons],
        messages=service.describe(verdict.reasons),
        checked_at=verdict.checked_at,
        events=[ComplianceEventModel.from_domain(event) for event in verdict.events],
    )


@router.post("/orders/evaluate", response_model=VerdictResponse)
def evaluate_order(
    payload: OrderEligibilityRequest,
    service: ComplianceService = Depends(get_compliance_service),
    sink: AuditSink = Depends(get_audit_sink),
) -> VerdictResponse:
    """Evaluate an order without touching the volume ledger."""
    verdict = service.evaluate_order_eligibility(
        payload.identity_id,
        payload.location.to_domain(),
        payload.regulated_volume_ml,
        _now(payload.now),
        order_id=payload.order_id,
    )
    sink.append(verdict.events)
    return _verdict_response(service, verdict)


@router.post("/orders/admit", response_model=VerdictResponse)
def admit_order(
    payload: OrderEligibilityRequest,
    service: ComplianceService = Depends(get_compliance_service),
    sink: AuditSink = Depends(get_audit_sink),
) -> VerdictResponse:
    """Evaluate an order and commit its volume to the daily ledger when allowed."""
    verdict = service.admit_order(
        payload.identity_id,
        payload.location.to_domain(),
        payload.regulated_volume_ml,
        _now(payload.now),
        order_id=payload.order_id,
    )
    sink.append(verdict.events)
    return _verdict_response(service, verdict)


@router.post("/location", response_model=LocationResponse)
def check_location(
    payload: LocationRequest,
    service: ComplianceService = Depends(get_compliance_service),
    sink: AuditSink = Depends(get_audit_sink),
) -> LocationResponse:
    point = payload.to_domain()
    event = None
    address = payload.address
    if payload.identity_id:
        outcome = service.verify_location(payload.identity_id, point, _now(None), address=payload.address)
        sink.append([outcome.event])
        verdict, address, event = outcome.verdict, outcome.address, ComplianceEventModel.from_domain(outcome.event)
    else:
        verdict = service.evaluate_location(point)

    nearest = verdict.nearest_exclusion
    return LocationResponse(
        eligible=verdict.eligible,
        message=verdict.message(),
        violations=[ExclusionZoneModel.from_domain(zone) for zone in verdict.restricted_zone_violations],
        delivery_zone=verdict.delivery_zone.zone_id if verdict.delivery_zone else None,
        restrictions=sorted(verdict.restrictions),
        nearest_exclusion_id=nearest.zone.zone_id if nearest else None,
        nearest_exclusion_meters=round(nearest.distance_meters, 1) if nearest else None,
        address=address,
        event=event,
    )


@router.post("/age", response_model=AgeResponse)
def check_age(
    payload: AgeRequest,
    service: ComplianceService = Depends(get_compliance_service),
    sink: AuditSink = Depends(get_audit_sink),
) -> AgeResponse:
    now = _now(None)
    minimum_age = service.minimum_age if payload.minimum_age is None else payload.minimum_age
    event = None
    if payload.identity_id:
        outcome = service.verify_age(
            payload.identity_id, payload.date_of_birth, now, document_number=payload.document_number
        )
        sink.append([outcome.event])
        result, event = outcome.result, ComplianceEventModel.from_domain(outcome.event)
        minimum_age = service.minimum_age
    else:
        result = service.evaluate_age(payload.date_of_birth, now, minimum_age)

    message = (
        "Age verification successful"
        if result.eligible
        else f"You must be {minimum_age} or older to access alcohol delivery services"
    )
    return AgeResponse(age=result.age, eligible=result.eligible, minimum_age=minimum_age, message=message, event=event)


@router.post("/kyc", response_model=KycResponse)
def complete_kyc(
    payload: KycRequest,
    service: ComplianceService = Depends(get_compliance_service),
    sink: AuditSink = Depends(get_audit_sink),
) -> KycResponse:
    """Pull the identity's KYC factors from the provider and record the outcome."""
    outcome = service.complete_kyc(payload.identity_id, _now(None))
    sink.append([outcome.event])
    return KycResponse(
        complete=outcome.result.complete,
        **outcome.result.to_detail(),
        record=VerificationRecordModel.from_domain(outcome.record),
        event=ComplianceEventModel.from_domain(outcome.event),
    )


@router.get("/zones", response_model=ZonesResponse)
def list_zones(service: ComplianceService = Depends(get_compliance_service)) -> ZonesResponse:
    return ZonesResponse(
        exclusion_zones=[ExclusionZoneModel.from_domain(zone) for zone in service.registry.list_exclusion_zones()],
        delivery_zones=[
            DeliveryZoneModel(
                zone_id=zone.zone_id,
                name=zone.name,
                active=zone.active,
                restrictions=sorted(zone.restrictions),
                boundary=[CoordinateModel(**coord.as_dict()) for coord in zone.boundary],
            )
            for zone in service.registry.list_active_delivery_zones()
        ],
    )


@router.get("/delivery-window", response_model=DeliveryWindowResponse)
def delivery_window(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    at: Optional[datetime] = Query(default=None, description="Time to check; defaults to now."),
    service: ComplianceService = Depends(get_compliance_service),
) -> DeliveryWindowResponse:
    verdict = service.evaluate_location(CoordinateModel(latitude=latitude, longitude=longitude).to_domain())
    window = check_delivery_window(verdict.restrictions, _now(at))
    return DeliveryWindowResponse(
        zone_id=verdict.delivery_zone.zone_id if verdict.delivery_zone else None,
        open_now=window.open_now and verdict.delivery_zone is not None,
        start_hour=window.start_hour,
        end_hour=window.end_hour,
        next_window=window.next_window,
    )


@router.post("/excise", response_model=ExciseResponse)
def excise(payload: ExciseRequest) -> ExciseResponse:
    breakdown = calculate_excise_tax(payload.product_type, str(payload.base_price))
    return ExciseResponse(
        excise_tax=float(breakdown.excise_tax),
        gst=float(breakdown.gst),
        total_tax=float(breakdown.total_tax),
    )
