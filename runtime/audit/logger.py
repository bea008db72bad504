"""Audit sinks: append-only JSONL on disk, or an in-memory list."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

from pydantic import ValidationError

from contracts.audit import AuditEntry, AuditEvent, AuditLogger

logger = logging.getLogger(__name__)


class _QueryMixin:
    def _read_all(self) -> list[AuditEntry]:
        raise NotImplementedError

    def query_by_request(self, request_id: str) -> list[AuditEntry]:
        return [e for e in self._read_all() if e.request_id == request_id]

    def query_by_event(self, event: AuditEvent, limit: int = 100) -> list[AuditEntry]:
        matches = [e for e in self._read_all() if e.event == event]
        return matches[-limit:]

    def query_errors(self, kind: str | None = None, limit: int = 100) -> list[AuditEntry]:
        """``tool.error`` entries, optionally narrowed to one error kind."""
        matches = [
            e for e in self._read_all()
            if e.event == AuditEvent.TOOL_ERROR and (kind is None or e.detail.get("kind") == kind)
        ]
        return matches[-limit:]

    def tail(self, n: int = 20) -> list[AuditEntry]:
        entries = self._read_all()
        return entries[-n:]


class JsonlAuditLogger(_QueryMixin, AuditLogger):
    """Thread-safe, append-only JSONL audit logger."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def log(self, entry: AuditEntry) -> None:
        line = entry.model_dump_json() + "\n"
        with self._lock:
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)

    def _read_all(self) -> list[AuditEntry]:
        if not self._path.exists():
            return []
        entries: list[AuditEntry] = []
        with self._path.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(AuditEntry(**json.loads(line)))
                except (json.JSONDecodeError, ValidationError):
                    # a torn write from a crashed process
                    logger.warning("Skipping unreadable audit line %d in %s", lineno, self._path)
        return entries


class MemoryAuditLogger(_QueryMixin, AuditLogger):
    """Keeps entries in process memory; used when `audit.path` is empty."""

    def __init__(self) -> None:
        self._entries: list[AuditEntry] = []
        self._lock = threading.Lock()

    def log(self, entry: AuditEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def _read_all(self) -> list[AuditEntry]:
        with self._lock:
            return list(self._entries)
