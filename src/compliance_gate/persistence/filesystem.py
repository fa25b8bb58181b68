"""File-based persistence helpers for audit trails and reports."""

from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator

from ..config import settings


class FileStorage:
    """Thin wrapper around the data root for storing JSON and JSON-lines output."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.data_root).resolve()
        self.audit_root = self.root / "audit"
        self.audit_root.mkdir(parents=True, exist_ok=True)
        self._append_lock = threading.Lock()

    def audit_file_for(self, moment: datetime) -> Path:
        stamp = moment.astimezone(timezone.utc).strftime("%Y%m%d")
        return self.audit_root / f"compliance_{stamp}.jsonl"

    def append_jsonl(self, path: Path, records: Iterable[dict[str, Any]]) -> int:
        path.parent.mkdir(parents=True, exist_ok=True)
        written = 0
        with self._append_lock, path.open("a", encoding="utf-8") as handle:
            for record in records:
                handle.write(json.dumps(record, ensure_ascii=False, sort_keys=True))
                handle.write("\n")
                written += 1
        return written

    def iter_jsonl(self, path: Path) -> Iterator[dict[str, Any]]:
        if not path.exists():
            return
        with path.open("r", encoding="utf-8") as handle:
            for line in handle:
                line = line.strip()
                if line:
                    yield json.loads(line)

    def audit_files(self) -> list[Path]:
        return sorted(self.audit_root.glob("compliance_*.jsonl"))

    def write_json(self, path: Path, data: Any, *, indent: int = 2) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=indent)
