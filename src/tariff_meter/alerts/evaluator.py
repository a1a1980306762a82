"""Level- and edge-triggered alert evaluation."""

from __future__ import annotations

import logging
from datetime import date, datetime

from tariff_meter.accounting.accumulator import CostReading
from tariff_meter.alerts.events import (
    AlertEvent,
    create_cost_threshold_event,
    create_daily_cost_event,
    create_high_power_event,
    create_tariff_changed_event,
)
from tariff_meter.config.schema import AlertsConfig
from tariff_meter.tariff.base import Tariff

logger = logging.getLogger(__name__)


def _breached(value: float, limit: float | None) -> bool:
    # Without a configured limit any nonzero value counts
    if limit is None:
        return value > 0
    return value > 0 and value >= limit


class AlertEvaluator:
    """Produces notification events from freshly computed meter values.

    Cost and device checks are level-triggered: they run on every tick and
    fire for as long as their condition holds. The tariff check is
    edge-triggered and fires once per observed transition.
    """

    def __init__(self, config: AlertsConfig | None = None) -> None:
        self._config = config or AlertsConfig()
        self._last_tariff: Tariff | None = None
        self._changes_today = 0
        self._changes_date: date | None = None

    @property
    def changes_today(self) -> int:
        return self._changes_today

    @property
    def last_tariff(self) -> Tariff | None:
        return self._last_tariff

    def update_config(self, config: AlertsConfig) -> None:
        self._config = config

    def check_tariff(self, tariff: Tariff, rate: float, now: datetime) -> AlertEvent | None:
        """Record the resolved tariff; return an event when it differs from the last one."""
        today = now.date()
        if self._changes_date != today:
            self._changes_today = 0
            self._changes_date = today

        previous = self._last_tariff
        self._last_tariff = tariff
        if previous is None or previous == tariff:
            return None

        self._changes_today += 1
        logger.info("Tariff changed from %s to %s", previous.value, tariff.value)
        return create_tariff_changed_event(previous.value, tariff.value, rate)

    def check_costs(self, reading: CostReading) -> list[AlertEvent]:
        """Evaluate cost and per-device conditions for one tick."""
        events: list[AlertEvent] = []
        cfg = self._config

        if _breached(reading.cost_per_hour, cfg.cost_per_hour_threshold):
            threshold = cfg.cost_per_hour_threshold
            events.append(create_cost_threshold_event(
                reading.cost_per_hour,
                reading.total_power_w,
                threshold if threshold is not None else reading.cost_per_hour,
            ))

        if _breached(reading.cost_today, cfg.daily_cost_threshold):
            threshold = cfg.daily_cost_threshold
            events.append(create_daily_cost_event(
                reading.cost_today,
                threshold if threshold is not None else reading.cost_today,
            ))

        for device in reading.device_powers:
            if not _breached(device.power, cfg.high_power_threshold_w):
                continue
            events.append(create_high_power_event(
                device.name, device.power, (device.power / 1000) * reading.rate,
            ))

        return events
