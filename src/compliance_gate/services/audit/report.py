"""Aggregate compliance events over a reporting window."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from ...models.domain import ComplianceEvent, EventType, Outcome

SUCCESS_RATE_THRESHOLD = 90.0
AGE_FAILURE_THRESHOLD = 5
LOCATION_FAILURE_THRESHOLD = 3


@dataclass(slots=True)
class ComplianceReport:
    start: datetime
    end: datetime
    total_events: int
    success_rate: float
    events_by_type: dict[str, int]
    violations: list[ComplianceEvent] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


def _recommendations(violations: list[ComplianceEvent], success_rate: float, total: int) -> list[str]:
    recommendations: list[str] = []
    if total and success_rate < SUCCESS_RATE_THRESHOLD:
        recommendations.append("Consider improving user onboarding process to reduce verification failures")

    failures = Counter(event.event_type for event in violations)
    if failures[EventType.AGE_CHECK] > AGE_FAILURE_THRESHOLD:
        recommendations.append("Enhance age verification UI/UX to reduce user errors")
    if failures[EventType.LOCATION_CHECK] > LOCATION_FAILURE_THRESHOLD:
        recommendations.append("Review geofencing accuracy and provide clearer location guidance")
    return recommendations


def build_compliance_report(events: Iterable[ComplianceEvent], start: datetime, end: datetime) -> ComplianceReport:
    if end < start:
        raise ValueError("end must not be before start")

    window = [event for event in events if start <= event.occurred_at <= end]
    total = len(window)
    successes = sum(1 for event in window if event.outcome is Outcome.SUCCESS)
    success_rate = round(successes / total * 100, 2) if total else 0.0
    by_type = Counter(event.event_type.value for event in window)
    violations = [event for event in window if event.outcome is Outcome.FAILURE]

    return ComplianceReport(
        start=start,
        end=end,
        total_events=total,
        success_rate=success_rate,
        events_by_type=dict(by_type),
        violations=violations,
        recommendations=_recommendations(violations, success_rate, total),
    )
