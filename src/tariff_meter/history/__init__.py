"""Bounded in-memory sample history."""

from tariff_meter.history.buffer import HistoryBuffer, HistorySample

__all__ = ["HistoryBuffer", "HistorySample"]
