"""MQTT topic constants."""

from __future__ import annotations

# Output capabilities written after every refresh
CAPABILITIES = (
    "tariff_type",
    "measure_price",
    "season_name",
    "minutes_until_change",
    "peak_hours_today",
    "offpeak_hours_today",
    "daily_avg_rate",
    "tariff_changes_today",
    "measure_power",
    "measure_power_total",
    "cost_per_hour",
    "cost_today",
    "cost_month_estimate",
)


def build_topics(prefix: str = "tariff_meter") -> dict[str, str]:
    """Build all capability topic strings from a configurable prefix."""
    topics = {"status": f"{prefix}/status"}
    for name in CAPABILITIES:
        topics[name] = f"{prefix}/capability/{name}"
    return topics


def event_topic(prefix: str, kind: str) -> str:
    return f"{prefix}/event/{kind}"
