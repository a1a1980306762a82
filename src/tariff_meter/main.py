"""Tariff Meter application entry point and lifecycle orchestrator.

Startup sequence:
  config → logging → device registry → meter engine → MQTT →
  device bootstrap → meter loop → API server
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal
import sys
from pathlib import Path

from tariff_meter import __version__
from tariff_meter.config.manager import ConfigManager
from tariff_meter.config.schema import AppConfig
from tariff_meter.logging.structured import setup_logging

logger = logging.getLogger(__name__)


class Application:
    """Main application lifecycle manager.

    Wires all modules together and manages startup/shutdown ordering.
    """

    def __init__(self, config: AppConfig, config_manager: ConfigManager) -> None:
        self.config = config
        self.config_manager = config_manager
        self._running = False
        self._tasks: list[asyncio.Task] = []

        # References held for cleanup and hot-reload
        self._registry = None
        self._tracker = None
        self._meter = None
        self._mqtt_client = None
        self._publisher = None
        self._meter_loop = None
        self._server = None
        self._web_app = None

    async def start(self) -> None:
        """Start all application components in dependency order."""
        logger.info("Starting Tariff Meter v%s", __version__)
        self._running = True

        # ── 1. Device registry + power cache ─────────────────
        from tariff_meter.devices.adapters.http import HttpDeviceRegistry
        from tariff_meter.devices.cache import DevicePowerCache
        from tariff_meter.devices.tracker import DeviceTracker

        cache = DevicePowerCache()
        registry = HttpDeviceRegistry(self.config.registry)
        tracker = DeviceTracker(
            registry,
            cache,
            capability=self.config.registry.capability,
            retry_seconds=self.config.registry.bootstrap_retry_seconds,
        )
        self._registry = registry
        self._tracker = tracker

        # ── 2. Meter engine ──────────────────────────────────
        from tariff_meter.engine import TariffMeter

        meter = TariffMeter(self.config, cache)
        self._meter = meter

        # ── 3. MQTT output sink ──────────────────────────────
        if self.config.mqtt.enabled:
            from tariff_meter.mqtt.client import MQTTClient
            from tariff_meter.mqtt.publisher import MeterPublisher

            mqtt_client = MQTTClient(self.config.mqtt)
            await mqtt_client.connect()
            self._mqtt_client = mqtt_client
            self._publisher = MeterPublisher(mqtt_client.publish, self.config.mqtt.topic_prefix)
            await self._publisher.publish_status(online=True)

        # ── 4. Meter loop ────────────────────────────────────
        from tariff_meter.control.loop import MeterLoop

        meter_loop = MeterLoop(self.config.meter, meter, self._publisher, tracker)
        self._meter_loop = meter_loop
        self.config_manager.add_listener(self._on_config_changed)

        # ── 5. Background tasks ──────────────────────────────
        self._tasks.append(asyncio.create_task(tracker.run(), name="device_bootstrap"))
        self._tasks.append(asyncio.create_task(registry.run(), name="power_poller"))
        self._tasks.append(asyncio.create_task(meter_loop.run(), name="meter_loop"))

        # ── 6. API server ────────────────────────────────────
        from tariff_meter.dashboard.app import create_app

        app = create_app(self.config, meter, config_manager=self.config_manager)
        app.state.meter_loop = meter_loop
        self._web_app = app

        import uvicorn

        uvi_config = uvicorn.Config(
            app,
            host=self.config.dashboard.host,
            port=self.config.dashboard.port,
            log_level="warning",
        )
        server = uvicorn.Server(uvi_config)
        # Signals are handled in main()
        server.install_signal_handlers = lambda: None
        self._server = server

        logger.info(
            "API available at http://%s:%d/api",
            self.config.dashboard.host,
            self.config.dashboard.port,
        )
        await server.serve()

    async def stop(self) -> None:
        """Gracefully stop all components in reverse order."""
        if not self._running:
            return

        logger.info("Shutting down Tariff Meter")
        self._running = False

        if self._server is not None:
            self._server.should_exit = True

        self.config_manager.remove_listener(self._on_config_changed)
        if self._meter_loop:
            self._meter_loop.stop()
        if self._tracker:
            self._tracker.stop()

        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        if self._publisher:
            await self._publisher.publish_status(online=False)
        if self._mqtt_client:
            await self._mqtt_client.disconnect()

        if self._registry:
            try:
                await self._registry.close()
            except Exception:
                logger.exception("Error closing device registry")

        self._server = None
        logger.info("Shutdown complete")

    def _on_config_changed(self, config: AppConfig, changed: list[str]) -> None:
        """Push saved settings into the running components."""
        self.config = config
        if self._web_app is not None:
            self._web_app.state.config = config
        if self._meter is not None:
            self._meter.update_config(config)
        if self._meter_loop is not None:
            self._meter_loop.update_config(config.meter)
            if "tariff" in changed:
                self._meter_loop.request_refresh()
        logger.info("Config reloaded: changed=%s", changed)


def main() -> None:
    """Console entry point: ``tariff-meter``.

    Config is read from ``config.defaults.yaml`` and ``config.yaml`` in the
    directory named by ``TARIFF_METER_CONFIG_DIR`` (default: cwd).
    """
    config_dir = Path(os.environ.get("TARIFF_METER_CONFIG_DIR", "."))
    config_manager = ConfigManager(config_dir / "config.defaults.yaml", config_dir / "config.yaml")
    config = config_manager.load()
    setup_logging(config.logging)

    app = Application(config, config_manager)
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    stop_task: asyncio.Task | None = None

    def _request_stop() -> None:
        nonlocal stop_task
        if stop_task is None:
            stop_task = loop.create_task(app.stop())

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _request_stop)

    try:
        loop.run_until_complete(app.start())
    except KeyboardInterrupt:
        pass
    finally:
        with contextlib.suppress(Exception):
            loop.run_until_complete(stop_task or app.stop())
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()


if __name__ == "__main__":
    main()
