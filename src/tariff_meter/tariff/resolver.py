"""Day/night tariff resolution and boundary time math.

All functions here are pure: they depend only on the supplied time and
configuration. Clock times are minutes since local midnight in [0, 1440).
Every window is inclusive at its start and exclusive at its end.
"""

from __future__ import annotations

from datetime import datetime

from tariff_meter.config.schema import (
    DEFAULT_DAY_END,
    DEFAULT_DAY_START,
    SeasonConfig,
    TariffConfig,
)
from tariff_meter.tariff.base import MINUTES_PER_DAY, Tariff, TariffReading, TariffState
from tariff_meter.tariff.season import resolve_season


def clock_string(now: datetime) -> str:
    """Zero-padded 24h "HH:MM" for ``now``."""
    return f"{now.hour:02d}:{now.minute:02d}"


def minutes_of_day(now: datetime) -> int:
    return now.hour * 60 + now.minute


def parse_clock(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def _window(season: SeasonConfig) -> tuple[str, str]:
    return season.day_start or DEFAULT_DAY_START, season.day_end or DEFAULT_DAY_END


def _window_minutes(season: SeasonConfig) -> tuple[int, int]:
    start, end = _window(season)
    return parse_clock(start), parse_clock(end)


def resolve_tariff(season: SeasonConfig | None, now: datetime) -> Tariff:
    """Day inside [dayStart, dayEnd), night otherwise; day when no season.

    Compares zero-padded clock strings lexicographically.
    """
    if season is None:
        return Tariff.DAY
    day_start, day_end = _window(season)
    current = clock_string(now)
    if day_start <= current < day_end:
        return Tariff.DAY
    return Tariff.NIGHT


def current_rate(tariff: Tariff, config: TariffConfig) -> float:
    if tariff is Tariff.DAY:
        return config.effective_day_rate
    return config.effective_night_rate


def minutes_until_change(season: SeasonConfig | None, tariff: Tariff, now: datetime) -> int:
    """Minutes until the next day/night boundary."""
    if season is None:
        return 0
    day_start, day_end = _window_minutes(season)
    current = minutes_of_day(now)

    if tariff is Tariff.DAY:
        return day_end - current
    if current >= day_end:
        return (MINUTES_PER_DAY - current) + day_start
    return day_start - current


def peak_hours_remaining(season: SeasonConfig | None, now: datetime) -> float:
    """Day-tariff hours still ahead before midnight."""
    if season is None:
        return 0.0
    day_start, day_end = _window_minutes(season)
    current = minutes_of_day(now)

    if current < day_start:
        return (day_end - day_start) / 60
    if current < day_end:
        return (day_end - current) / 60
    return 0.0


def offpeak_hours_remaining(season: SeasonConfig | None, now: datetime) -> float:
    """Night-tariff hours still ahead before midnight.

    Before the day window: the rest of the morning block plus the whole
    evening block. Inside it: the evening block. After it: the remainder of
    the evening block.
    """
    if season is None:
        return 0.0
    day_start, day_end = _window_minutes(season)
    current = minutes_of_day(now)
    evening = MINUTES_PER_DAY - day_end

    if current < day_start:
        return (day_start - current) / 60 + evening / 60
    if current < day_end:
        return evening / 60
    return (MINUTES_PER_DAY - current) / 60


def daily_average_rate(season: SeasonConfig | None, config: TariffConfig) -> float:
    """Time-weighted mean of the day and night rates over 24h.

    ``dayEnd < dayStart`` is not corrected and yields a negative peak share.
    """
    if season is None:
        return 0.0
    day_start, day_end = _window_minutes(season)
    peak = day_end - day_start
    offpeak = MINUTES_PER_DAY - peak
    return (peak * config.effective_day_rate + offpeak * config.effective_night_rate) / MINUTES_PER_DAY


def resolve_state(now: datetime, config: TariffConfig) -> TariffState:
    """Season, tariff and rate in force at ``now``."""
    season = resolve_season(now.date(), config.seasons)
    tariff = resolve_tariff(season, now)
    return TariffState(season=season, tariff=tariff, rate=current_rate(tariff, config))


def build_reading(now: datetime, config: TariffConfig) -> TariffReading:
    """Resolve the tariff state and all derived figures for ``now``."""
    state = resolve_state(now, config)
    return TariffReading(
        state=state,
        currency=config.currency,
        minutes_until_change=minutes_until_change(state.season, state.tariff, now),
        peak_hours_remaining=peak_hours_remaining(state.season, now),
        offpeak_hours_remaining=offpeak_hours_remaining(state.season, now),
        daily_average_rate=daily_average_rate(state.season, config),
        timestamp=now,
    )


def format_rate(rate: float, currency: str) -> str:
    return f"{rate:.4f} {currency}/kWh"
