from datetime import datetime, timedelta, timezone

import pytest

from compliance_gate.models.domain import ComplianceEvent, EventType, Outcome
from compliance_gate.services.audit import build_compliance_report, emit_event

START = datetime(2026, 10, 11, tzinfo=timezone.utc)
END = datetime(2026, 10, 18, tzinfo=timezone.utc)


def _event(event_type: EventType, passed: bool, offset_hours: int = 1) -> ComplianceEvent:
    return emit_event(event_type, "user-1", passed, occurred_at=START + timedelta(hours=offset_hours))


def test_emit_event_normalises_outcome_and_stamps_time() -> None:
    event = emit_event("age_check", "user-1", True, {"age": 25})

    assert event.event_type is EventType.AGE_CHECK
    assert event.outcome is Outcome.SUCCESS
    assert event.event_id.startswith("comp_")
    assert event.occurred_at.tzinfo is not None
    assert event.detail == {"age": 25}


def test_emit_event_accepts_explicit_outcome_and_order() -> None:
    moment = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)

    event = emit_event(EventType.VOLUME_CHECK, "user-1", "failure", occurred_at=moment, order_id="ord-9")

    assert event.outcome is Outcome.FAILURE
    assert event.occurred_at == moment
    assert event.order_id == "ord-9"
    assert event.detail == {}


def test_event_ids_are_unique() -> None:
    ids = {emit_event(EventType.KYC_CHECK, "user-1", True).event_id for _ in range(50)}
    assert len(ids) == 50


def test_unknown_event_type_is_rejected() -> None:
    with pytest.raises(ValueError):
        emit_event("payment_check", "user-1", True)


def test_event_record_survives_serialisation() -> None:
    event = _event(EventType.LOCATION_CHECK, False)

    restored = ComplianceEvent.from_record(event.to_record())

    assert restored == event


def test_report_counts_and_success_rate() -> None:
    events = [
        _event(EventType.AGE_CHECK, True),
        _event(EventType.AGE_CHECK, False),
        _event(EventType.LOCATION_CHECK, True),
    ]

    report = build_compliance_report(events, START, END)

    assert report.total_events == 3
    assert report.success_rate == 66.67
    assert report.events_by_type == {"age_check": 2, "location_check": 1}
    assert [event.event_type for event in report.violations] == [EventType.AGE_CHECK]
    assert report.recommendations == [
        "Consider improving user onboarding process to reduce verification failures"
    ]


def test_report_ignores_events_outside_window() -> None:
    inside = _event(EventType.AGE_CHECK, True)
    before = emit_event(EventType.AGE_CHECK, "user-1", False, occurred_at=START - timedelta(seconds=1))
    after = emit_event(EventType.AGE_CHECK, "user-1", False, occurred_at=END + timedelta(seconds=1))

    report = build_compliance_report([before, inside, after], START, END)

    assert report.total_events == 1
    assert report.success_rate == 100.0
    assert report.recommendations == []


def test_report_recommends_by_failure_type() -> None:
    events = [_event(EventType.AGE_CHECK, False, hour) for hour in range(6)]
    events += [_event(EventType.LOCATION_CHECK, False, hour) for hour in range(4)]
    events += [_event(EventType.KYC_CHECK, True, hour) for hour in range(100)]

    report = build_compliance_report(events, START, END)

    assert report.success_rate == 90.91
    assert report.recommendations == [
        "Enhance age verification UI/UX to reduce user errors",
        "Review geofencing accuracy and provide clearer location guidance",
    ]


def test_empty_report_has_no_recommendations() -> None:
    report = build_compliance_report([], START, END)

    assert report.total_events == 0
    assert report.success_rate == 0.0
    assert report.recommendations == []


def test_report_rejects_inverted_window() -> None:
    with pytest.raises(ValueError):
        build_compliance_report([], END, START)
