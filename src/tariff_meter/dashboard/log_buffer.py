"""Recent log records kept in memory for the API."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timezone

import structlog


@dataclass(frozen=True)
class BufferedRecord:
    timestamp: str
    level: str
    logger: str
    message: str
    tick: int | None = None


class RingBufferHandler(logging.Handler):
    """Logging handler holding the newest ``capacity`` records."""

    def __init__(self, capacity: int = 1000) -> None:
        super().__init__()
        self._records: deque[BufferedRecord] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._records.maxlen or 0

    def resize(self, capacity: int) -> None:
        """Change capacity, keeping the newest records."""
        with self._lock:
            self._records = deque(self._records, maxlen=capacity)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            # structlog-wrapped records carry their event dict in record.msg
            if isinstance(record.msg, dict):
                message = str(record.msg.get("event", ""))
            else:
                message = record.getMessage()
            entry = BufferedRecord(
                timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                level=record.levelname,
                logger=record.name,
                message=message,
                tick=structlog.contextvars.get_contextvars().get("tick"),
            )
        except Exception:
            self.handleError(record)
            return
        with self._lock:
            self._records.append(entry)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def get_records(self, limit: int = 200, level: str | None = None) -> list[dict]:
        """Newest first, optionally only one level. A limit below 1 returns nothing."""
        if limit < 1:
            return []
        with self._lock:
            records = list(self._records)
        if level:
            wanted = level.upper()
            records = [r for r in records if r.level == wanted]
        return [asdict(r) for r in reversed(records)][:limit]


log_buffer = RingBufferHandler()
