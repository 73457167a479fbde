"""In-memory logger.

Keeps every entry in an ordered, append-only list. Used by tests to assert
on retry attempts and by callers that want to attach the run log to a
status report.
"""

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .interface import Logger


@dataclass(frozen=True)
class LogRecord:
    """A single captured log entry."""

    level: str
    message: str
    fields: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def format(self) -> str:
        line = f"[{self.timestamp.strftime('%Y/%m/%d %H:%M:%S')}][{self.level}] {self.message}"
        if self.fields:
            line += " " + " ".join(f"{k}={v}" for k, v in self.fields.items())
        return line


class MemoryLogger(Logger):
    """Logger that records entries instead of writing them.

    Thread-safe for appends, so it can be shared by targets running in
    worker threads.

    Example:
        logger = MemoryLogger()
        logger.info("Retry #1 of 2.")
        assert logger.messages("INFO") == ["Retry #1 of 2."]
    """

    def __init__(self, name: str = "backup-core") -> None:
        self._name = name
        self._session_id = str(uuid.uuid4())
        self._records: List[LogRecord] = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def records(self) -> List[LogRecord]:
        """Copy of the captured records, in logging order."""
        with self._lock:
            return list(self._records)

    def messages(self, level: Optional[str] = None) -> List[str]:
        """Return captured messages, optionally filtered by level name."""
        return [
            r.message for r in self.records
            if level is None or r.level == level.upper()
        ]

    def has_warnings(self) -> bool:
        return any(r.level == "WARNING" for r in self.records)

    def lines(self) -> List[str]:
        return [r.format() for r in self.records]

    def clear(self) -> None:
        """Drop all captured records.

        Useful for test cleanup.
        """
        with self._lock:
            self._records.clear()

    def get_session_id(self) -> str:
        return self._session_id

    def _log(self, level: str, message: str, **kwargs: Any) -> None:
        record = LogRecord(level=level, message=message, fields=dict(kwargs))
        with self._lock:
            self._records.append(record)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log("DEBUG", message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log("ERROR", message, **kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        self._log("CRITICAL", message, **kwargs)
