"""Configuration management for Tariff Meter."""

from tariff_meter.config.schema import AppConfig, SeasonConfig, TariffConfig
from tariff_meter.config.manager import ConfigManager

__all__ = ["AppConfig", "ConfigManager", "SeasonConfig", "TariffConfig"]
