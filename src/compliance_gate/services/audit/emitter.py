"""Formatter for compliance audit events. Performs no I/O."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from ...models.domain import ComplianceEvent, EventType, Outcome


def generate_event_id() -> str:
    return f"comp_{uuid.uuid4().hex}"


def emit_event(
    event_type: EventType | str,
    identity_id: str,
    outcome: Outcome | str | bool,
    detail: Optional[Mapping[str, Any]] = None,
    *,
    occurred_at: Optional[datetime] = None,
    order_id: Optional[str] = None,
) -> ComplianceEvent:
    if isinstance(outcome, bool):
        outcome = Outcome.SUCCESS if outcome else Outcome.FAILURE
    return ComplianceEvent(
        event_id=generate_event_id(),
        event_type=EventType(event_type),
        identity_id=identity_id,
        outcome=Outcome(outcome),
        detail=dict(detail or {}),
        occurred_at=occurred_at or datetime.now(timezone.utc),
        order_id=order_id,
    )
