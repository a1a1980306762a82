"""Tariff meter engine: ties together tariff resolution, cost, alerts and history."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from tariff_meter.accounting.accumulator import CostAccumulator, CostReading, active_devices
from tariff_meter.alerts.evaluator import AlertEvaluator
from tariff_meter.alerts.events import AlertEvent
from tariff_meter.config.schema import AppConfig, TariffConfig
from tariff_meter.devices.base import DeviceSnapshot
from tariff_meter.devices.cache import DevicePowerCache
from tariff_meter.history.buffer import HistoryBuffer, HistorySample
from tariff_meter.tariff.base import Tariff, TariffReading
from tariff_meter.tariff.resolver import build_reading, format_rate, resolve_state

logger = logging.getLogger(__name__)


@dataclass
class TickResult:
    """Outputs of one full evaluation cycle."""

    tariff: TariffReading
    cost: CostReading
    events: list[AlertEvent] = field(default_factory=list)


class TariffMeter:
    """Owns all tariff and cost state for one meter.

    Collaborators interact only through these methods: the control loop
    drives ``refresh_tariff``/``update_cost``, the device layer feeds the
    power cache, and the API reads the query helpers.
    """

    def __init__(
        self,
        config: AppConfig,
        cache: DevicePowerCache | None = None,
        start: datetime | None = None,
    ) -> None:
        self._tariff_config = config.tariff
        self._meter_config = config.meter
        self._cache = cache or DevicePowerCache()
        self._accumulator = CostAccumulator(start)
        self._alerts = AlertEvaluator(config.alerts)
        self._history = HistoryBuffer(config.meter.history_capacity)
        self._device_powers: list[DeviceSnapshot] = []
        self._last_tariff: TariffReading | None = None
        self._last_cost: CostReading | None = None

    @property
    def tariff_config(self) -> TariffConfig:
        return self._tariff_config

    @property
    def cache(self) -> DevicePowerCache:
        return self._cache

    @property
    def accumulator(self) -> CostAccumulator:
        return self._accumulator

    @property
    def alerts(self) -> AlertEvaluator:
        return self._alerts

    @property
    def history(self) -> HistoryBuffer:
        return self._history

    @property
    def device_powers(self) -> list[DeviceSnapshot]:
        return list(self._device_powers)

    @property
    def last_tariff(self) -> TariffReading | None:
        return self._last_tariff

    @property
    def last_cost(self) -> CostReading | None:
        return self._last_cost

    def update_config(self, config: AppConfig) -> None:
        """Swap in edited settings; takes effect on the next refresh."""
        self._tariff_config = config.tariff
        self._meter_config = config.meter
        self._alerts.update_config(config.alerts)

    def refresh_tariff(self, now: datetime | None = None) -> tuple[TariffReading, list[AlertEvent]]:
        """Resolve season/tariff/rate and the derived boundary figures."""
        now = now or datetime.now()
        reading = build_reading(now, self._tariff_config)
        events = []
        changed = self._alerts.check_tariff(reading.tariff, reading.rate, now)
        if changed is not None:
            events.append(changed)
        reading.tariff_changes_today = self._alerts.changes_today
        self._last_tariff = reading

        logger.info(
            "Updated: %s, %s, %s %s/kWh, peak: %.1fh, offpeak: %.1fh",
            reading.state.season_name, reading.tariff.value, reading.rate,
            reading.currency, reading.peak_hours_remaining, reading.offpeak_hours_remaining,
        )
        return reading, events

    def update_cost(self, now: datetime | None = None) -> tuple[CostReading, list[AlertEvent]]:
        """Charge power since the last update and evaluate cost alerts."""
        now = now or datetime.now()
        rate = resolve_state(now, self._tariff_config).rate
        reading = self._accumulator.update(now, self._cache.snapshot(), rate)
        self._device_powers = reading.device_powers
        self._last_cost = reading

        self._history.append(HistorySample(
            timestamp=now,
            power=reading.total_power_w,
            cost_per_hour=reading.cost_per_hour,
            cost_today=reading.cost_today,
        ))

        if reading.total_power_w > 0 or reading.device_powers:
            logger.info(
                "Power: %.0fW from %d devices, Cost/h: %.4f%s, Today: %.2f%s",
                reading.total_power_w, len(reading.device_powers),
                reading.cost_per_hour, self._tariff_config.currency,
                reading.cost_today, self._tariff_config.currency,
            )
        return reading, self._alerts.check_costs(reading)

    def tick(self, now: datetime | None = None) -> TickResult:
        """One full cycle: tariff refresh, then cost accumulation."""
        now = now or datetime.now()
        tariff, events = self.refresh_tariff(now)
        cost, cost_events = self.update_cost(now)
        return TickResult(tariff=tariff, cost=cost, events=events + cost_events)

    # ── Queries ──────────────────────────────────────────────

    def current_rate_info(self, now: datetime | None = None) -> dict:
        state = resolve_state(now or datetime.now(), self._tariff_config)
        currency = self._tariff_config.currency
        return {
            "rate": state.rate,
            "tariff": state.tariff.value,
            "currency": currency,
            "formatted": format_rate(state.rate, currency),
        }

    def is_tariff(self, tariff: Tariff, now: datetime | None = None) -> bool:
        return resolve_state(now or datetime.now(), self._tariff_config).tariff is tariff

    def top_consumers(self, limit: int | None = None) -> dict:
        """Highest-drawing devices from the last tick, with their combined cost."""
        limit = limit or self._meter_config.top_consumers_limit
        top = self._device_powers[:limit]
        rate = self._last_cost.rate if self._last_cost else 0.0
        total_power = sum(d.power for d in top)
        return {
            "consumers": [d.to_dict() for d in top],
            "total_power": total_power,
            "cost_per_hour": (total_power / 1000) * rate,
        }

    def chart_data(self, now: datetime | None = None) -> dict:
        """Live figures plus the sample history for charting."""
        state = resolve_state(now or datetime.now(), self._tariff_config)
        total_power = sum(d.power for d in active_devices(self._cache.snapshot()))
        return {
            "current": {
                "tariff": state.tariff.value,
                "rate": state.rate,
                "currency": self._tariff_config.currency,
                "totalPower": total_power,
                "costPerHour": (total_power / 1000) * state.rate,
            },
            "history": [s.to_dict() for s in self._history.snapshot()],
        }
