"""Storage contract for the per-identity daily volume ledger."""

from __future__ import annotations

import threading
from datetime import date
from typing import Optional, Protocol

from ..models.domain import VolumeLedgerEntry


class LedgerStore(Protocol):
    """Keyed by (identity_id, day); supports an atomic compare-and-set."""

    def get_entry(self, identity_id: str, day: date) -> Optional[VolumeLedgerEntry]:
        ...

    def compare_and_set(self, identity_id: str, day: date, expected_ml: int, new_ml: int) -> tuple[bool, int]:
        """Write ``new_ml`` only if the stored total still equals ``expected_ml``.

        Returns whether the write happened and the total now stored.
        """
        ...


class InMemoryLedgerStore:
    """Process-local ledger used by tests and single-instance deployments."""

    def __init__(self) -> None:
        self._rows: dict[tuple[str, date], int] = {}
        self._lock = threading.Lock()

    def get_entry(self, identity_id: str, day: date) -> Optional[VolumeLedgerEntry]:
        with self._lock:
            total = self._rows.get((identity_id, day))
        if total is None:
            return None
        return VolumeLedgerEntry(identity_id=identity_id, day=day, cumulative_ml=total)

    def compare_and_set(self, identity_id: str, day: date, expected_ml: int, new_ml: int) -> tuple[bool, int]:
        key = (identity_id, day)
        with self._lock:
            current = self._rows.get(key, 0)
            if current != expected_ml:
                return False, current
            self._rows[key] = new_ml
            return True, new_ml

    def seed(self, identity_id: str, day: date, cumulative_ml: int) -> None:
        with self._lock:
            self._rows[(identity_id, day)] = cumulative_ml
