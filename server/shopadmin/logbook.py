"""
System log book exposed through /api/logs.

Entries are kept in a bounded in-process buffer. LogBookHandler mirrors
WARNING and above from the application's own loggers, which is how operator
warnings (database fallback, plain-text credentials) reach the admin UI.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import threading
import uuid
from collections import Counter, deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


LogLevel = Literal["debug", "info", "warning", "error"]
LEVELS = ("debug", "info", "warning", "error")


class LogEntryRequest(BaseModel):
    """Log entry submitted by the admin UI."""
    level: LogLevel = Field("info", description="debug | info | warning | error")
    category: str = Field("system", min_length=1, max_length=64, description="Area of the system, e.g. orders, auth")
    message: str = Field(..., min_length=1, max_length=2000)
    details: Optional[Dict[str, Any]] = Field(None, description="Structured context")


class SystemLogBook:
    def __init__(self, max_entries: int = 1000):
        self._entries: Deque[Dict[str, Any]] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def add(
        self,
        level: str,
        category: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        entry = {
            "id": str(uuid.uuid4()),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level if level in LEVELS else "info",
            "category": category,
            "message": message,
            "details": details,
        }
        with self._lock:
            self._entries.append(entry)
        return entry

    def query(
        self,
        level: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """Matching entries, newest first."""
        with self._lock:
            entries = list(reversed(self._entries))
        if level:
            entries = [e for e in entries if e["level"] == level]
        if category:
            entries = [e for e in entries if e["category"] == category]
        if search:
            needle = search.lower()
            entries = [e for e in entries if needle in e["message"].lower()]
        return entries[:max(limit, 0)]

    def clear(self) -> int:
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        return removed

    def counts(self) -> Dict[str, int]:
        with self._lock:
            counter = Counter(e["level"] for e in self._entries)
        return {level: counter.get(level, 0) for level in LEVELS}

    def last_error(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            for entry in reversed(self._entries):
                if entry["level"] == "error":
                    return entry
        return None

    def export(self) -> str:
        """All entries as CSV, oldest first."""
        with self._lock:
            entries = list(self._entries)
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(["timestamp", "level", "category", "message", "details"])
        for e in entries:
            writer.writerow([
                e["timestamp"],
                e["level"],
                e["category"],
                e["message"],
                json.dumps(e["details"]) if e["details"] is not None else "",
            ])
        return buffer.getvalue()


class LogBookHandler(logging.Handler):
    """Copies application log records into a SystemLogBook."""

    _LEVEL_NAMES = {
        logging.DEBUG: "debug",
        logging.INFO: "info",
        logging.WARNING: "warning",
        logging.ERROR: "error",
        logging.CRITICAL: "error",
    }

    def __init__(self, book: SystemLogBook, level: int = logging.WARNING):
        super().__init__(level=level)
        self.book = book

    def emit(self, record: logging.LogRecord) -> None:
        try:
            category = record.name.split(".")[-1]
            details = {"logger": record.name}
            if record.exc_info and record.exc_info[1] is not None:
                details["exception"] = repr(record.exc_info[1])
            self.book.add(
                self._LEVEL_NAMES.get(record.levelno, "info"),
                category,
                record.getMessage(),
                details,
            )
        except Exception:
            self.handleError(record)
