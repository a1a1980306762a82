"""Running daily/hourly/monthly cost from instantaneous power draw."""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable

from tariff_meter.devices.base import DeviceSnapshot

logger = logging.getLogger(__name__)


@dataclass
class CostAccumulatorState:
    """Mutable accumulation state owned by a single meter."""

    cost_today: float = 0.0
    last_update: datetime = field(default_factory=datetime.now)
    reset_date: date = field(default_factory=date.today)


@dataclass
class CostReading:
    """Result of one accumulation step."""

    total_power_w: float
    rate: float
    cost_increment: float
    cost_today: float
    cost_per_hour: float
    month_estimate: float
    device_powers: list[DeviceSnapshot]
    timestamp: datetime
    was_reset: bool = False

    def to_dict(self) -> dict:
        return {
            "total_power_w": self.total_power_w,
            "rate": self.rate,
            "cost_increment": self.cost_increment,
            "cost_today": self.cost_today,
            "cost_per_hour": self.cost_per_hour,
            "month_estimate": self.month_estimate,
            "devices": [d.to_dict() for d in self.device_powers],
            "timestamp": self.timestamp.isoformat(),
        }


def active_devices(devices: Iterable[DeviceSnapshot]) -> list[DeviceSnapshot]:
    """Devices drawing power, highest draw first."""
    return sorted((d for d in devices if d.power > 0), key=lambda d: d.power, reverse=True)


def month_estimate(cost_today: float, now: datetime) -> float:
    """Project today's spend rate over the whole calendar month.

    Unstable just after midnight, when few hours have elapsed.
    """
    hours_elapsed = now.hour + now.minute / 60
    daily_projection = (cost_today / hours_elapsed) * 24 if hours_elapsed > 0 else 0.0
    days_in_month = calendar.monthrange(now.year, now.month)[1]
    return daily_projection * days_in_month


class CostAccumulator:
    """Integrates power over wall-clock time into a daily cost total.

    Each update charges the whole interval since the previous update at the
    rate in force now (right-endpoint rule). When the local calendar day has
    advanced, the daily total is zeroed before the increment is added.
    """

    def __init__(self, start: datetime | None = None) -> None:
        start = start or datetime.now()
        self._state = CostAccumulatorState(
            cost_today=0.0, last_update=start, reset_date=start.date(),
        )

    @property
    def state(self) -> CostAccumulatorState:
        return self._state

    @property
    def cost_today(self) -> float:
        return self._state.cost_today

    def update(self, now: datetime, devices: Iterable[DeviceSnapshot], rate: float) -> CostReading:
        """Charge the elapsed interval and return the refreshed figures."""
        state = self._state
        elapsed_hours = (now - state.last_update).total_seconds() / 3600
        if elapsed_hours < 0:
            logger.warning(
                "Clock moved backwards by %.1fs, charging nothing for this interval",
                -elapsed_hours * 3600,
            )
            elapsed_hours = 0.0

        powered = active_devices(devices)
        total_power = sum(d.power for d in powered)
        increment = (total_power / 1000) * elapsed_hours * rate

        was_reset = False
        today = now.date()
        if today != state.reset_date:
            logger.info(
                "Daily cost reset: %s closed at %.4f", state.reset_date.isoformat(), state.cost_today,
            )
            state.cost_today = 0.0
            state.reset_date = today
            was_reset = True

        state.cost_today += increment
        state.last_update = now

        return CostReading(
            total_power_w=total_power,
            rate=rate,
            cost_increment=increment,
            cost_today=state.cost_today,
            cost_per_hour=(total_power / 1000) * rate,
            month_estimate=month_estimate(state.cost_today, now),
            device_powers=powered,
            timestamp=now,
            was_reset=was_reset,
        )
