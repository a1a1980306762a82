"""Notification events emitted by the alert evaluator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class AlertKind(str, Enum):
    TARIFF_CHANGED = "tariff-changed"
    COST_THRESHOLD_EXCEEDED = "cost-threshold-exceeded"
    DAILY_COST_EXCEEDED = "daily-cost-exceeded"
    HIGH_POWER_DEVICE = "high-power-device"


@dataclass
class AlertEvent:
    """A single notification for the event sink."""

    kind: AlertKind
    payload: dict[str, Any]
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "payload": dict(self.payload),
            "timestamp": self.timestamp.isoformat(),
        }


def create_tariff_changed_event(previous: str, new: str, rate: float) -> AlertEvent:
    return AlertEvent(
        kind=AlertKind.TARIFF_CHANGED,
        payload={"previous_tariff": previous, "new_tariff": new, "rate": rate},
    )


def create_cost_threshold_event(cost_per_hour: float, total_power: float, threshold: float) -> AlertEvent:
    return AlertEvent(
        kind=AlertKind.COST_THRESHOLD_EXCEEDED,
        payload={"cost_per_hour": cost_per_hour, "total_power": total_power, "threshold": threshold},
    )


def create_daily_cost_event(cost_today: float, threshold: float) -> AlertEvent:
    return AlertEvent(
        kind=AlertKind.DAILY_COST_EXCEEDED,
        payload={"cost_today": cost_today, "threshold": threshold},
    )


def create_high_power_event(device_name: str, power: float, cost_per_hour: float) -> AlertEvent:
    return AlertEvent(
        kind=AlertKind.HIGH_POWER_DEVICE,
        payload={"device_name": device_name, "power": power, "cost_per_hour": cost_per_hour},
    )
