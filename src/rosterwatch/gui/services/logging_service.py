"""Logging service.

Keeps the most recent log records in a ring buffer so the dashboard can show
why the roster went stale (fetch failures, persistence fallbacks) without the
operator opening a terminal. Each captured record is also announced on the
event bus as ``GUIEvent.LOG_RECORD_ADDED``.
"""

from __future__ import annotations

import json
import logging
import os
from collections import deque
from dataclasses import dataclass
from threading import RLock
from typing import Deque, List, Optional

from .event_bus import EventBus, GUIEvent

__all__ = ["LogEntry", "LoggingService", "configure_logging"]

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


@dataclass(frozen=True)
class LogEntry:
    level: str
    name: str
    message: str
    created: float


class _RingBufferHandler(logging.Handler):
    def __init__(self, svc: "LoggingService") -> None:
        super().__init__()
        self._svc = svc

    def emit(self, record: logging.LogRecord) -> None:
        self._svc._ingest(record)


class LoggingService:
    def __init__(self, capacity: int = 500, *, event_bus: EventBus | None = None) -> None:
        self._lock = RLock()
        self._entries: Deque[LogEntry] = deque(maxlen=capacity)
        self._bus = event_bus
        self._handler = _RingBufferHandler(self)
        self._handler.setLevel(logging.DEBUG)
        self._attached = False

    # Lifecycle --------------------------------------------------------
    def attach_root(self, level: int = logging.INFO) -> None:
        if self._attached:
            return
        self._handler.setLevel(level)
        root = logging.getLogger()
        root.addHandler(self._handler)
        # Don't miss records at ``level`` (preserve existing if already lower)
        if root.level > level:
            root.setLevel(level)
        self._attached = True

    def detach_root(self) -> None:
        if not self._attached:
            return
        logging.getLogger().removeHandler(self._handler)
        self._attached = False

    def _ingest(self, record: logging.LogRecord) -> None:
        entry = LogEntry(
            level=record.levelname,
            name=record.name,
            message=record.getMessage(),
            created=record.created,
        )
        with self._lock:
            self._entries.append(entry)
        if self._bus is not None:
            self._bus.publish(
                GUIEvent.LOG_RECORD_ADDED,
                {"level": entry.level, "name": entry.name, "message": entry.message[:120]},
            )

    # Query ------------------------------------------------------------
    def recent(self, limit: Optional[int] = None) -> List[LogEntry]:
        with self._lock:
            data = list(self._entries)
        return data[-limit:] if limit is not None else data

    def filter(
        self, *, level: str | None = None, name_contains: str | None = None
    ) -> List[LogEntry]:
        out: List[LogEntry] = []
        for e in self.recent():
            if level and e.level != level:
                continue
            if name_contains and name_contains not in e.name:
                continue
            out.append(e)
        return out

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def export_jsonl(self, path: str | None = None, *, level: str | None = None) -> int:
        """Write (optionally level-filtered) entries as JSON Lines; returns line count."""
        entries = self.filter(level=level)
        file_path = path or os.path.join(os.getcwd(), "rosterwatch_logs.jsonl")
        with open(file_path, "w", encoding="utf-8") as f:
            for e in entries:
                f.write(
                    json.dumps(
                        {"level": e.level, "name": e.name, "message": e.message, "created": e.created},
                        sort_keys=True,
                    )
                    + "\n"
                )
        return len(entries)


def configure_logging(verbose: bool = False) -> None:
    """Console logging for the launcher; safe to call more than once."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)
    logging.getLogger("httpx").setLevel(logging.WARNING)
