"""Append-only destinations for compliance events."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Protocol

from ..models.domain import ComplianceEvent
from .filesystem import FileStorage

logger = logging.getLogger(__name__)


class AuditSink(Protocol):
    def append(self, events: Iterable[ComplianceEvent]) -> int:
        ...

    def list_events(
        self,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        identity_id: Optional[str] = None,
    ) -> list[ComplianceEvent]:
        ...


def _in_window(
    event: ComplianceEvent,
    start: Optional[datetime],
    end: Optional[datetime],
    identity_id: Optional[str],
) -> bool:
    if identity_id is not None and event.identity_id != identity_id:
        return False
    if start is not None and event.occurred_at < start:
        return False
    if end is not None and event.occurred_at > end:
        return False
    return True


class InMemoryAuditSink:
    def __init__(self) -> None:
        self._events: list[ComplianceEvent] = []
        self._lock = threading.Lock()

    def append(self, events: Iterable[ComplianceEvent]) -> int:
        batch = list(events)
        with self._lock:
            self._events.extend(batch)
        return len(batch)

    def list_events(self, *, start=None, end=None, identity_id=None) -> list[ComplianceEvent]:
        with self._lock:
            snapshot = list(self._events)
        return [event for event in snapshot if _in_window(event, start, end, identity_id)]


class JsonlAuditSink:
    """Writes one JSON line per event into a daily file under ``<data_root>/audit``."""

    def __init__(self, storage: FileStorage | None = None, root: Path | None = None) -> None:
        self.storage = storage or FileStorage(root=root)

    def append(self, events: Iterable[ComplianceEvent]) -> int:
        by_file: dict[Path, list[dict]] = {}
        for event in events:
            by_file.setdefault(self.storage.audit_file_for(event.occurred_at), []).append(event.to_record())
        written = 0
        for path, records in by_file.items():
            written += self.storage.append_jsonl(path, records)
        logger.debug(f"Appended {written} compliance events to {len(by_file)} file(s)")
        return written

    def list_events(self, *, start=None, end=None, identity_id=None) -> list[ComplianceEvent]:
        events: list[ComplianceEvent] = []
        for path in self.storage.audit_files():
            for record in self.storage.iter_jsonl(path):
                event = ComplianceEvent.from_record(record)
                if _in_window(event, start, end, identity_id):
                    events.append(event)
        events.sort(key=lambda event: event.occurred_at)
        return events
