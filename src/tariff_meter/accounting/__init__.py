"""Cost accounting: integrating live power into running cost figures."""

from tariff_meter.accounting.accumulator import CostAccumulator, CostAccumulatorState, CostReading

__all__ = ["CostAccumulator", "CostAccumulatorState", "CostReading"]
