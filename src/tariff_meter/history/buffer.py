"""In-memory ring buffer of periodic meter samples for charting."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime

# 24 hours at one sample per minute
DEFAULT_CAPACITY = 1440


@dataclass(frozen=True)
class HistorySample:
    timestamp: datetime
    power: float
    cost_per_hour: float
    cost_today: float

    def to_dict(self) -> dict:
        return {
            "t": int(self.timestamp.timestamp() * 1000),
            "power": self.power,
            "costH": self.cost_per_hour,
            "costDay": self.cost_today,
        }


class HistoryBuffer:
    """Fixed-capacity FIFO of samples; the oldest are evicted first."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self._capacity = capacity
        self._buffer: deque[HistorySample] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, sample: HistorySample) -> None:
        with self._lock:
            self._buffer.append(sample)

    def snapshot(self) -> list[HistorySample]:
        """All retained samples, oldest first."""
        with self._lock:
            return list(self._buffer)

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)
