"""Alert evaluation and notification events."""

from tariff_meter.alerts.evaluator import AlertEvaluator
from tariff_meter.alerts.events import AlertEvent, AlertKind

__all__ = ["AlertEvaluator", "AlertEvent", "AlertKind"]
