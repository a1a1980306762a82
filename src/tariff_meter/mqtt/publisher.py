"""Publishes meter capabilities and alert events."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Coroutine

from tariff_meter.accounting.accumulator import CostReading
from tariff_meter.alerts.events import AlertEvent
from tariff_meter.mqtt.topics import build_topics, event_topic
from tariff_meter.tariff.base import TariffReading

logger = logging.getLogger(__name__)

# Type for async publish function: (topic, payload, retain) -> None
PublishFn = Callable[[str, str, bool], Coroutine[Any, Any, None]]


def _format(value: Any) -> str:
    # Fixed-point, never exponent form; trailing zeros trimmed
    if isinstance(value, float):
        text = f"{value:.6f}".rstrip("0").rstrip(".")
        return "0" if text in ("", "-0") else text
    return str(value)


class MeterPublisher:
    """Writes capability values and events through ``publish_fn``.

    Every write is isolated: a failure is logged and the remaining writes of
    the same batch still go out.
    """

    def __init__(self, publish_fn: PublishFn, topic_prefix: str = "tariff_meter") -> None:
        self._publish = publish_fn
        self._prefix = topic_prefix
        self._topics = build_topics(topic_prefix)

    async def _write(self, topic: str, payload: str, retain: bool) -> bool:
        try:
            await self._publish(topic, payload, retain)
            return True
        except Exception as e:
            logger.error("Failed to write %s: %s", topic, e)
            return False

    async def publish_capabilities(self, values: dict[str, Any]) -> int:
        """Write named capability values. Returns the number written."""
        written = 0
        for name, value in values.items():
            if await self._write(self._topics[name], _format(value), True):
                written += 1
        return written

    async def publish_tariff(self, reading: TariffReading) -> int:
        return await self.publish_capabilities({
            "tariff_type": reading.tariff.value,
            "measure_price": reading.rate,
            "season_name": reading.state.season_name,
            "minutes_until_change": reading.minutes_until_change,
            "peak_hours_today": reading.peak_hours_remaining,
            "offpeak_hours_today": reading.offpeak_hours_remaining,
            "daily_avg_rate": reading.daily_average_rate,
            "tariff_changes_today": reading.tariff_changes_today,
        })

    async def publish_cost(self, reading: CostReading) -> int:
        return await self.publish_capabilities({
            "measure_power": round(reading.total_power_w),
            "measure_power_total": round(reading.total_power_w),
            "cost_per_hour": reading.cost_per_hour,
            "cost_today": reading.cost_today,
            "cost_month_estimate": reading.month_estimate,
        })

    async def publish_events(self, events: list[AlertEvent]) -> int:
        written = 0
        for event in events:
            payload = json.dumps(event.to_dict())
            if await self._write(event_topic(self._prefix, event.kind.value), payload, False):
                written += 1
        return written

    async def publish_status(self, online: bool = True) -> None:
        await self._write(self._topics["status"], "online" if online else "offline", True)
