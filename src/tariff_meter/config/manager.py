"""YAML-backed configuration with change notification."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable

import yaml

from tariff_meter.config.schema import AppConfig

logger = logging.getLogger(__name__)

# Receives the new config and the top-level sections that were saved
ChangeListener = Callable[[AppConfig, list[str]], None]


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; nested dicts merge, anything else replaces."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open() as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


class ConfigManager:
    """Shipped defaults overlaid with the user's ``config.yaml``.

    Only the user file is ever written. Listeners run after each successful
    save, in registration order; a failing listener is logged and skipped.
    """

    def __init__(
        self,
        defaults_path: Path | None = None,
        user_path: Path | None = None,
    ) -> None:
        self._defaults_path = defaults_path or Path("config.defaults.yaml")
        self._user_path = user_path or Path("config.yaml")
        self._config: AppConfig | None = None
        self._merged: dict[str, Any] = {}
        self._listeners: list[ChangeListener] = []

    @property
    def config(self) -> AppConfig:
        if self._config is None:
            raise RuntimeError("Config not loaded. Call load() first.")
        return self._config

    def load(self) -> AppConfig:
        self._merged = deep_merge(read_yaml(self._defaults_path), read_yaml(self._user_path))
        self._config = AppConfig.model_validate(self._merged)
        logger.info("Configuration loaded from %s", self._user_path)
        return self._config

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def validate_update(self, updates: dict[str, Any]) -> AppConfig:
        """Raise ``ValidationError`` if ``updates`` would produce an invalid config."""
        return AppConfig.model_validate(deep_merge(self._merged, updates))

    def save_user_config(self, updates: dict[str, Any]) -> AppConfig:
        """Persist ``updates`` into the user file, reload and notify listeners."""
        user = deep_merge(read_yaml(self._user_path), updates)
        tmp_path = self._user_path.with_suffix(self._user_path.suffix + ".tmp")
        with tmp_path.open("w") as f:
            yaml.safe_dump(user, f, default_flow_style=False, sort_keys=False)
        os.replace(tmp_path, self._user_path)
        config = self.load()

        changed = list(updates)
        for listener in list(self._listeners):
            try:
                listener(config, changed)
            except Exception:
                logger.exception("Config change listener failed")
        return config
