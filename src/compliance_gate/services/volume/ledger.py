"""Daily regulated-volume limit check with two-phase reservation."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from typing import Iterator

from ...errors import LedgerUnavailable, ReservationConflict
from ...models.domain import VolumeLedgerEntry
from ...persistence.ledger_store import LedgerStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class VolumeCheck:
    identity_id: str
    day: date
    incoming_ml: int
    daily_limit_ml: int
    total_before: int
    total_after: int
    allowed: bool

    def to_detail(self) -> dict:
        return {
            "day": self.day.isoformat(),
            "incoming_ml": self.incoming_ml,
            "daily_limit_ml": self.daily_limit_ml,
            "total_before": self.total_before,
            "total_after": self.total_after,
        }


@dataclass(slots=True)
class _KeyLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class VolumeLedger:
    """Check-then-commit access to the ledger store.

    ``check_and_reserve`` only reads. ``commit_reservation`` writes with a
    compare-and-set against the total the check saw, so a stale reservation is
    refused instead of overshooting the cap. Callers that want check and commit
    to serialize in process hold ``reservation(identity_id, day)`` around both.

    A key's lock lives only while some caller holds or waits for it.
    """

    def __init__(self, store: LedgerStore) -> None:
        self.store = store
        self._locks: dict[tuple[str, date], _KeyLock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def reservation(self, identity_id: str, day: date) -> Iterator[None]:
        key = (identity_id, day)
        with self._locks_guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _KeyLock()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._locks[key]

    def current_total(self, identity_id: str, day: date) -> int:
        try:
            entry = self.store.get_entry(identity_id, day)
        except LedgerUnavailable:
            raise
        except Exception as exc:
            logger.error(f"Ledger read failed for {identity_id} on {day}: {exc}")
            raise LedgerUnavailable(f"Volume ledger could not be read: {exc}") from exc
        return entry.cumulative_ml if entry else 0

    def check_and_reserve(
        self,
        identity_id: str,
        day: date,
        incoming_ml: int,
        daily_limit_ml: int,
    ) -> VolumeCheck:
        if incoming_ml < 0:
            raise ValueError("incoming_ml must be >= 0")
        if daily_limit_ml <= 0:
            raise ValueError("daily_limit_ml must be > 0")

        existing = self.current_total(identity_id, day)
        total_after = existing + incoming_ml
        return VolumeCheck(
            identity_id=identity_id,
            day=day,
            incoming_ml=incoming_ml,
            daily_limit_ml=daily_limit_ml,
            total_before=existing,
            total_after=total_after,
            allowed=total_after <= daily_limit_ml,
        )

    def commit_reservation(self, check: VolumeCheck) -> VolumeLedgerEntry:
        if not check.allowed:
            raise ValueError("Cannot commit a reservation that exceeded the daily limit.")
        try:
            written, current = self.store.compare_and_set(
                check.identity_id, check.day, check.total_before, check.total_after
            )
        except LedgerUnavailable:
            raise
        except Exception as exc:
            logger.error(f"Ledger write failed for {check.identity_id} on {check.day}: {exc}")
            raise LedgerUnavailable(f"Volume ledger could not be updated: {exc}") from exc
        if not written:
            logger.warning(
                f"Stale reservation for {check.identity_id} on {check.day} "
                f"(expected {check.total_before}ml, found {current}ml)"
            )
            raise ReservationConflict(check.identity_id, check.day, check.total_before, current)
        logger.info(f"Ledger for {check.identity_id} on {check.day} now {current}ml")
        return VolumeLedgerEntry(identity_id=check.identity_id, day=check.day, cumulative_ml=current)
