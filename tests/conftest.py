"""Shared test fixtures for Tariff Meter."""

from __future__ import annotations

from pathlib import Path

import pytest

from tariff_meter.config.manager import ConfigManager
from tariff_meter.config.schema import AppConfig, SeasonConfig, TariffConfig


@pytest.fixture
def config() -> AppConfig:
    """Provide a default test configuration."""
    return AppConfig()


@pytest.fixture
def tariff_config() -> TariffConfig:
    return TariffConfig()


@pytest.fixture
def winter() -> SeasonConfig:
    return SeasonConfig(
        name="Winter", start_month=11, start_day=1, end_month=3, end_day=31,
        day_start="06:00", day_end="22:00",
    )


@pytest.fixture
def summer() -> SeasonConfig:
    return SeasonConfig(
        name="Summer", start_month=4, start_day=1, end_month=10, end_day=31,
        day_start="07:00", day_end="23:00",
    )


@pytest.fixture
def config_manager(tmp_path: Path) -> ConfigManager:
    """Provide a config manager with test paths."""
    defaults = tmp_path / "config.defaults.yaml"
    defaults.write_text("mqtt:\n  enabled: false\n")
    user = tmp_path / "config.yaml"
    mgr = ConfigManager(defaults_path=defaults, user_path=user)
    mgr.load()
    return mgr
