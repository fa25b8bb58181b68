"""Compliance report endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...persistence.audit_sink import AuditSink
from ...persistence.filesystem import FileStorage
from ...schemas.compliance import ComplianceEventModel, ComplianceReportResponse
from ...services.audit.report import build_compliance_report
from ..dependencies import get_audit_sink

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/compliance", response_model=ComplianceReportResponse)
def compliance_report(
    start: datetime | None = Query(default=None, description="Window start (defaults to 7 days ago)"),
    end: datetime | None = Query(default=None, description="Window end (defaults to now)"),
    persist: bool = Query(default=False, description="Also write the report under the data root"),
    sink: AuditSink = Depends(get_audit_sink),
) -> ComplianceReportResponse:
    end = end or datetime.now(timezone.utc)
    start = start or end - timedelta(days=7)
    if start.tzinfo is None or end.tzinfo is None:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="start/end must include a UTC offset")
    try:
        report = build_compliance_report(sink.list_events(start=start, end=end), start, end)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    response = ComplianceReportResponse(
        start=report.start,
        end=report.end,
        total_events=report.total_events,
        success_rate=report.success_rate,
        events_by_type=report.events_by_type,
        violations=[ComplianceEventModel.from_domain(event) for event in report.violations],
        recommendations=report.recommendations,
    )
    if persist:
        storage = FileStorage()
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        storage.write_json(storage.root / "reports" / f"compliance_{stamp}.json", response.model_dump(mode="json"))
    return response
