"""Tariff domain types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from tariff_meter.config.schema import SeasonConfig

MINUTES_PER_DAY = 24 * 60


class Tariff(str, Enum):
    """The active price period."""

    DAY = "day"
    NIGHT = "night"


@dataclass(frozen=True)
class TariffState:
    """Season, tariff and rate in force at a given instant."""

    season: SeasonConfig | None
    tariff: Tariff
    rate: float

    @property
    def season_name(self) -> str:
        return self.season.name if self.season else "Unknown"


@dataclass
class TariffReading:
    """Everything the meter publishes after a tariff refresh."""

    state: TariffState
    currency: str
    minutes_until_change: int
    peak_hours_remaining: float
    offpeak_hours_remaining: float
    daily_average_rate: float
    tariff_changes_today: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def tariff(self) -> Tariff:
        return self.state.tariff

    @property
    def rate(self) -> float:
        return self.state.rate

    def to_dict(self) -> dict:
        return {
            "season": self.state.season_name,
            "tariff": self.state.tariff.value,
            "rate": self.state.rate,
            "currency": self.currency,
            "minutes_until_change": self.minutes_until_change,
            "peak_hours_remaining": self.peak_hours_remaining,
            "offpeak_hours_remaining": self.offpeak_hours_remaining,
            "daily_average_rate": self.daily_average_rate,
            "tariff_changes_today": self.tariff_changes_today,
            "timestamp": self.timestamp.isoformat(),
        }
