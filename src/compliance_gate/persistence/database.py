"""Supabase-backed stores for the ledger, verification records and audit log."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable, Optional

from supabase import Client

from ..db.supabase import get_supabase_client
from ..errors import LedgerUnavailable
from ..models.domain import ComplianceEvent, VerificationRecord, VolumeLedgerEntry

logger = logging.getLogger(__name__)

LEDGER_TABLE = "volume_ledger"
VERIFICATION_TABLE = "verification_records"
COMPLIANCE_LOG_TABLE = "compliance_log"


def _require_client(client: Client | None) -> Client:
    resolved = client or get_supabase_client()
    if resolved is None:
        raise ConnectionError(
            "Supabase not configured. Set CG_SUPABASE_URL and CG_SUPABASE_KEY environment variables."
        )
    return resolved


class SupabaseLedgerStore:
    """Ledger rows in ``volume_ledger``, unique on (identity_id, day).

    The compare-and-set is a conditional update filtered on the expected
    ``cumulative_ml``; a first write for the day is an insert that the unique
    key rejects if another writer got there first.
    """

    def __init__(self, client: Client | None = None) -> None:
        try:
            self.client = _require_client(client)
        except ConnectionError as exc:
            raise LedgerUnavailable(str(exc)) from exc

    def _select(self, identity_id: str, day: date) -> Optional[dict[str, Any]]:
        response = (
            self.client.table(LEDGER_TABLE)
            .select("identity_id, day, cumulative_ml")
            .eq("identity_id", identity_id)
            .eq("day", day.isoformat())
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return rows[0] if rows else None

    def get_entry(self, identity_id: str, day: date) -> Optional[VolumeLedgerEntry]:
        row = self._select(identity_id, day)
        if row is None:
            return None
        return VolumeLedgerEntry(identity_id=identity_id, day=day, cumulative_ml=int(row["cumulative_ml"]))

    def compare_and_set(self, identity_id: str, day: date, expected_ml: int, new_ml: int) -> tuple[bool, int]:
        row = self._select(identity_id, day)
        if row is None:
            if expected_ml != 0:
                return False, 0
            try:
                self.client.table(LEDGER_TABLE).insert(
                    {"identity_id": identity_id, "day": day.isoformat(), "cumulative_ml": new_ml}
                ).execute()
                return True, new_ml
            except Exception as exc:
                raced = self._select(identity_id, day)
                if raced is None:
                    raise
                logger.debug(f"Ledger insert for {identity_id} on {day} lost a race: {exc}")
                return False, int(raced["cumulative_ml"])

        current = int(row["cumulative_ml"])
        if current != expected_ml:
            return False, current
        response = (
            self.client.table(LEDGER_TABLE)
            .update({"cumulative_ml": new_ml})
            .eq("identity_id", identity_id)
            .eq("day", day.isoformat())
            .eq("cumulative_ml", expected_ml)
            .execute()
        )
        if response.data:
            return True, new_ml
        latest = self._select(identity_id, day)
        return False, int(latest["cumulative_ml"]) if latest else 0


class SupabaseVerificationStore:
    def __init__(self, client: Client | None = None) -> None:
        self.client = _require_client(client)

    def get(self, identity_id: str) -> Optional[VerificationRecord]:
        response = (
            self.client.table(VERIFICATION_TABLE).select("*").eq("identity_id", identity_id).limit(1).execute()
        )
        rows = response.data or []
        if not rows:
            return None
        row = rows[0]
        dob = row.get("date_of_birth")
        last = row.get("last_verified_at")
        return VerificationRecord(
            identity_id=identity_id,
            date_of_birth=date.fromisoformat(dob) if isinstance(dob, str) else dob,
            age_verified=bool(row.get("age_verified")),
            kyc_completed=bool(row.get("kyc_completed")),
            location_verified=bool(row.get("location_verified")),
            last_verified_at=datetime.fromisoformat(last) if isinstance(last, str) else last,
        )

    def save(self, record: VerificationRecord) -> VerificationRecord:
        self.client.table(VERIFICATION_TABLE).upsert(
            {
                "identity_id": record.identity_id,
                "date_of_birth": record.date_of_birth.isoformat() if record.date_of_birth else None,
                "age_verified": record.age_verified,
                "kyc_completed": record.kyc_completed,
                "location_verified": record.location_verified,
                "last_verified_at": record.last_verified_at.isoformat() if record.last_verified_at else None,
            },
            on_conflict="identity_id",
        ).execute()
        return record


class SupabaseAuditSink:
    """Appends events to ``compliance_log``."""

    def __init__(self, client: Client | None = None) -> None:
        self.client = _require_client(client)

    def append(self, events: Iterable[ComplianceEvent]) -> int:
        rows = []
        for event in events:
            record = event.to_record()
            rows.append(
                {
                    "event_id": record["event_id"],
                    "event_type": record["event_type"],
                    "identity_id": record["identity_id"],
                    "order_id": record["order_id"],
                    "outcome": record["outcome"],
                    "event_data": record["detail"],
                    "occurred_at": record["occurred_at"],
                }
            )
        if not rows:
            return 0
        self.client.table(COMPLIANCE_LOG_TABLE).insert(rows).execute()
        return len(rows)

    def list_events(
        self,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        identity_id: Optional[str] = None,
    ) -> list[ComplianceEvent]:
        query = self.client.table(COMPLIANCE_LOG_TABLE).select("*")
        if identity_id is not None:
            query = query.eq("identity_id", identity_id)
        if start is not None:
            query = query.gte("occurred_at", start.isoformat())
        if end is not None:
            query = query.lte("occurred_at", end.isoformat())
        response = query.order("occurred_at").execute()
        return [
            ComplianceEvent.from_record({**row, "detail": row.get("event_data")})
            for row in (response.data or [])
        ]
