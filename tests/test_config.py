"""Tests for configuration models and the YAML config manager."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from tariff_meter.config.manager import ConfigManager, deep_merge
from tariff_meter.config.schema import AppConfig, SeasonConfig, SettingsUpdate, TariffConfig


class TestSchema:
    def test_defaults(self, config: AppConfig) -> None:
        assert config.tariff.currency == "EUR"
        assert config.tariff.effective_day_rate == 0.12
        assert config.tariff.effective_night_rate == 0.06
        assert [s.name for s in config.tariff.seasons] == ["Winter", "Summer"]
        assert config.meter.history_capacity == 1440
        assert config.alerts.cost_per_hour_threshold is None

    def test_camel_case_aliases(self) -> None:
        season = SeasonConfig.model_validate({
            "name": "Winter", "startMonth": 11, "startDay": 1, "endMonth": 3, "endDay": 31,
            "dayStart": "06:00", "dayEnd": "22:00",
        })
        assert season.start_month == 11
        assert season.wraps_year

    def test_null_rates_fall_back(self) -> None:
        tariff = TariffConfig(day_rate=None, night_rate=None)
        assert tariff.effective_day_rate == 0.12
        assert tariff.effective_night_rate == 0.06

    def test_zero_rate_kept(self) -> None:
        assert TariffConfig(night_rate=0).effective_night_rate == 0.0

    def test_negative_rate_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TariffConfig(day_rate=-0.1)

    @pytest.mark.parametrize("clock", ["6:00", "06-00", "0600", ""])
    def test_bad_clock_rejected(self, clock: str) -> None:
        with pytest.raises(ValidationError):
            SeasonConfig(name="X", start_month=1, start_day=1, end_month=2, end_day=1, day_start=clock)

    def test_out_of_range_dates_accepted(self) -> None:
        season = SeasonConfig(name="X", start_month=2, start_day=1, end_month=2, end_day=31)
        assert season.end_day == 31

    def test_settings_update_tracks_present_fields(self) -> None:
        update = SettingsUpdate.model_validate({"dayRate": 0.2})
        assert update.model_dump(exclude_unset=True) == {"day_rate": 0.2}


class TestConfigManager:
    def test_load_defaults(self, config_manager: ConfigManager) -> None:
        assert config_manager.config.mqtt.enabled is False
        assert config_manager.config.tariff.day_rate == 0.12

    def test_user_overrides_merge(self, tmp_path: Path) -> None:
        defaults = tmp_path / "defaults.yaml"
        defaults.write_text("tariff:\n  currency: EUR\n  day_rate: 0.12\nmeter:\n  tick_interval_seconds: 60\n")
        user = tmp_path / "user.yaml"
        user.write_text("tariff:\n  day_rate: 0.2\n")

        config = ConfigManager(defaults, user).load()
        assert config.tariff.currency == "EUR"
        assert config.tariff.day_rate == 0.2
        assert config.meter.tick_interval_seconds == 60

    def test_config_before_load(self, tmp_path: Path) -> None:
        with pytest.raises(RuntimeError):
            ConfigManager(tmp_path / "a.yaml", tmp_path / "b.yaml").config

    def test_save_persists_and_notifies(self, config_manager: ConfigManager, tmp_path: Path) -> None:
        seen = []
        config_manager.add_listener(lambda config, changed: seen.append((config, changed)))

        config = config_manager.save_user_config({"tariff": {"night_rate": 0.05}})

        assert config.tariff.night_rate == 0.05
        assert seen == [(config, ["tariff"])]
        saved = yaml.safe_load((tmp_path / "config.yaml").read_text())
        assert saved == {"tariff": {"night_rate": 0.05}}

    def test_successive_saves_merge(self, config_manager: ConfigManager) -> None:
        config_manager.save_user_config({"tariff": {"night_rate": 0.05}})
        config = config_manager.save_user_config({"tariff": {"currency": "BGN"}})
        assert config.tariff.night_rate == 0.05
        assert config.tariff.currency == "BGN"

    def test_failing_listener_does_not_block_others(self, config_manager: ConfigManager) -> None:
        seen = []

        def broken(config, changed):
            raise RuntimeError("boom")

        config_manager.add_listener(broken)
        config_manager.add_listener(lambda config, changed: seen.append(changed))
        config_manager.save_user_config({"meter": {"tick_interval_seconds": 30}})
        assert seen == [["meter"]]

    def test_removed_listener_not_called(self, config_manager: ConfigManager) -> None:
        seen = []

        def listener(config, changed):
            seen.append(changed)

        config_manager.add_listener(listener)
        config_manager.remove_listener(listener)
        config_manager.save_user_config({"tariff": {"currency": "USD"}})
        assert seen == []

    def test_validate_update_does_not_save(self, config_manager: ConfigManager, tmp_path: Path) -> None:
        with pytest.raises(ValidationError):
            config_manager.validate_update({"tariff": {"day_rate": -1}})
        assert not (tmp_path / "config.yaml").exists()

    def test_deep_merge(self) -> None:
        base = {"a": {"b": 1, "c": 2}, "d": [1, 2]}
        merged = deep_merge(base, {"a": {"c": 3}, "d": [9]})
        assert merged == {"a": {"b": 1, "c": 3}, "d": [9]}
        assert base["a"]["c"] == 2
