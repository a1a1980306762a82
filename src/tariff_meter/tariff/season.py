"""Season calendar: which season definition applies on a given date."""

from __future__ import annotations

from datetime import date
from typing import Sequence

from tariff_meter.config.schema import SeasonConfig


def is_date_in_season(month: int, day: int, season: SeasonConfig) -> bool:
    """Check whether (month, day) falls inside the season's date range.

    Comparison is lexicographic on the (month, day) pair with both ends
    inclusive. A season whose start month is after its end month wraps the
    year boundary, so membership is "on/after start" OR "on/before end".
    """
    after_start = (month, day) >= (season.start_month, season.start_day)
    before_end = (month, day) <= (season.end_month, season.end_day)
    if season.wraps_year:
        return after_start or before_end
    return after_start and before_end


def resolve_season(when: date, seasons: Sequence[SeasonConfig]) -> SeasonConfig | None:
    """Return the first season containing ``when``.

    Falls back to the first configured season when nothing matches, and to
    None when no seasons are configured.
    """
    for season in seasons:
        if is_date_in_season(when.month, when.day, season):
            return season
    return seasons[0] if seasons else None
