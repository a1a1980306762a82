"""Season calendar and day/night tariff resolution."""

from tariff_meter.tariff.base import Tariff, TariffReading, TariffState
from tariff_meter.tariff.resolver import build_reading, resolve_state, resolve_tariff
from tariff_meter.tariff.season import is_date_in_season, resolve_season

__all__ = [
    "Tariff",
    "TariffReading",
    "TariffState",
    "build_reading",
    "is_date_in_season",
    "resolve_season",
    "resolve_state",
    "resolve_tariff",
]
