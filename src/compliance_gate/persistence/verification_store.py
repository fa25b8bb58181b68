"""Storage contract for per-identity verification records."""

from __future__ import annotations

import threading
from typing import Iterable, Optional, Protocol

from ..models.domain import VerificationRecord


class VerificationStore(Protocol):
    def get(self, identity_id: str) -> Optional[VerificationRecord]:
        ...

    def save(self, record: VerificationRecord) -> VerificationRecord:
        ...


class InMemoryVerificationStore:
    def __init__(self, records: Iterable[VerificationRecord] = ()) -> None:
        self._records = {record.identity_id: record for record in records}
        self._lock = threading.Lock()

    def get(self, identity_id: str) -> Optional[VerificationRecord]:
        with self._lock:
            return self._records.get(identity_id)

    def save(self, record: VerificationRecord) -> VerificationRecord:
        with self._lock:
            self._records[record.identity_id] = record
        return record
