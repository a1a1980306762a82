"""Pydantic configuration models for all system settings."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat

DEFAULT_DAY_RATE = 0.12
DEFAULT_NIGHT_RATE = 0.06
DEFAULT_CURRENCY = "EUR"
DEFAULT_DAY_START = "06:00"
DEFAULT_DAY_END = "22:00"

_CLOCK_PATTERN = r"^\d{2}:\d{2}$"


class SeasonConfig(BaseModel):
    """A calendar date range with its own day-tariff window.

    Month/day values are compared literally and are not range-checked, so
    e.g. ``endDay: 31`` in February is accepted.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    start_month: int = Field(alias="startMonth")
    start_day: int = Field(alias="startDay")
    end_month: int = Field(alias="endMonth")
    end_day: int = Field(alias="endDay")
    day_start: str = Field(DEFAULT_DAY_START, alias="dayStart", pattern=_CLOCK_PATTERN)
    day_end: str = Field(DEFAULT_DAY_END, alias="dayEnd", pattern=_CLOCK_PATTERN)

    @property
    def wraps_year(self) -> bool:
        return self.start_month > self.end_month


def default_seasons() -> list[SeasonConfig]:
    return [
        SeasonConfig(
            name="Winter", start_month=11, start_day=1, end_month=3, end_day=31,
            day_start="06:00", day_end="22:00",
        ),
        SeasonConfig(
            name="Summer", start_month=4, start_day=1, end_month=10, end_day=31,
            day_start="07:00", day_end="23:00",
        ),
    ]


class TariffConfig(BaseModel):
    """User-editable tariff settings (rates, currency, seasons).

    A null rate means "not set" and resolves to the fallback pair.
    """

    model_config = ConfigDict(populate_by_name=True)

    currency: str = DEFAULT_CURRENCY
    day_rate: NonNegativeFloat | None = Field(DEFAULT_DAY_RATE, alias="dayRate")
    night_rate: NonNegativeFloat | None = Field(DEFAULT_NIGHT_RATE, alias="nightRate")
    seasons: list[SeasonConfig] = Field(default_factory=default_seasons)

    @property
    def effective_day_rate(self) -> float:
        return self.day_rate if self.day_rate is not None else DEFAULT_DAY_RATE

    @property
    def effective_night_rate(self) -> float:
        return self.night_rate if self.night_rate is not None else DEFAULT_NIGHT_RATE


class SettingsUpdate(BaseModel):
    """Partial settings body accepted by the settings API."""

    model_config = ConfigDict(populate_by_name=True)

    currency: str | None = None
    day_rate: NonNegativeFloat | None = Field(None, alias="dayRate")
    night_rate: NonNegativeFloat | None = Field(None, alias="nightRate")
    seasons: list[SeasonConfig] | None = None


class MeterConfig(BaseModel):
    tick_interval_seconds: int = Field(60, ge=1)
    initial_cost_delay_seconds: int = Field(10, ge=0)
    history_capacity: int = Field(1440, ge=1)
    top_consumers_limit: int = Field(5, ge=1)


class AlertsConfig(BaseModel):
    # None = fire on any nonzero value
    cost_per_hour_threshold: NonNegativeFloat | None = None
    daily_cost_threshold: NonNegativeFloat | None = None
    high_power_threshold_w: NonNegativeFloat | None = None


class RegistryConfig(BaseModel):
    base_url: str = "http://localhost:8123/api"
    token: str = ""
    capability: str = "measure_power"
    poll_interval_seconds: float = Field(5.0, gt=0)
    bootstrap_retry_seconds: float = Field(30.0, gt=0)
    request_timeout_seconds: float = Field(5.0, gt=0)


class MQTTConfig(BaseModel):
    enabled: bool = True
    broker_host: str = "localhost"
    broker_port: int = 1883
    username: str = ""
    password: str = ""
    topic_prefix: str = "tariff_meter"
    reconnect_interval_seconds: float = Field(30.0, ge=0)


class DashboardConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "json"
    file: str = ""
    buffer_size: int = Field(1000, ge=1)


class AppConfig(BaseModel):
    """Root configuration model containing all system settings."""

    tariff: TariffConfig = TariffConfig()
    meter: MeterConfig = MeterConfig()
    alerts: AlertsConfig = AlertsConfig()
    registry: RegistryConfig = RegistryConfig()
    mqtt: MQTTConfig = MQTTConfig()
    dashboard: DashboardConfig = DashboardConfig()
    logging: LoggingConfig = LoggingConfig()
