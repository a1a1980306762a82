"""Tests for the meter loop."""

from __future__ import annotations

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

from tariff_meter.alerts.events import AlertKind
from tariff_meter.config.schema import AppConfig, MeterConfig
from tariff_meter.control.loop import MeterLoop
from tariff_meter.devices.base import DeviceSnapshot
from tariff_meter.devices.cache import DevicePowerCache
from tariff_meter.engine import TariffMeter

START = datetime(2025, 1, 15, 7, 0)


def _meter(power: float = 2000) -> TariffMeter:
    cache = DevicePowerCache()
    cache.track(DeviceSnapshot(id="heater", name="Heater", power=power))
    return TariffMeter(AppConfig(), cache, start=START)


def _publisher() -> AsyncMock:
    publisher = AsyncMock()
    publisher.publish_tariff = AsyncMock(return_value=8)
    publisher.publish_cost = AsyncMock(return_value=5)
    publisher.publish_events = AsyncMock(return_value=0)
    return publisher


class TestTick:
    async def test_tick_publishes_tariff_and_cost(self) -> None:
        publisher = _publisher()
        loop = MeterLoop(MeterConfig(), _meter(), publisher)
        await loop.tick_once(datetime(2025, 1, 15, 8, 0))

        publisher.publish_tariff.assert_awaited_once()
        publisher.publish_cost.assert_awaited_once()
        reading = publisher.publish_cost.await_args.args[0]
        assert reading.cost_today > 0
        assert loop.state.tick_count == 1

    async def test_tick_dispatches_events(self) -> None:
        publisher = _publisher()
        received = []

        async def on_events(events):
            received.extend(events)

        loop = MeterLoop(MeterConfig(), _meter(), publisher)
        loop.add_event_listener(on_events)
        await loop.tick_once(datetime(2025, 1, 15, 8, 0))

        publisher.publish_events.assert_awaited()
        kinds = {e.kind for e in received}
        assert AlertKind.COST_THRESHOLD_EXCEEDED in kinds
        assert AlertKind.HIGH_POWER_DEVICE in kinds

    async def test_failing_tariff_publish_does_not_abort_tick(self) -> None:
        publisher = _publisher()
        publisher.publish_tariff.side_effect = RuntimeError("sink down")
        loop = MeterLoop(MeterConfig(), _meter(), publisher)

        await loop.tick_once(datetime(2025, 1, 15, 8, 0))
        publisher.publish_cost.assert_awaited_once()

    async def test_failing_listener_is_isolated(self) -> None:
        loop = MeterLoop(MeterConfig(), _meter(), _publisher())
        loop.add_event_listener(AsyncMock(side_effect=RuntimeError("boom")))
        await loop.tick_once(datetime(2025, 1, 15, 8, 0))
        assert loop.state.tick_count == 1

    async def test_runs_without_publisher(self) -> None:
        meter = _meter()
        loop = MeterLoop(MeterConfig(), meter)
        await loop.tick_once(datetime(2025, 1, 15, 8, 0))
        assert meter.last_cost is not None


class TestRun:
    async def test_refresh_on_start_and_on_request(self) -> None:
        publisher = _publisher()
        config = MeterConfig(tick_interval_seconds=3600, initial_cost_delay_seconds=3600)
        loop = MeterLoop(config, _meter(), publisher)

        task = asyncio.create_task(loop.run())
        await asyncio.sleep(0.05)
        assert loop.state.is_running
        assert loop.state.refresh_count == 1

        loop.request_refresh()
        await asyncio.sleep(0.05)
        assert loop.state.refresh_count == 2
        assert publisher.publish_tariff.await_count == 2

        loop.stop()
        await asyncio.wait_for(task, timeout=2)
        assert not loop.state.is_running
        assert loop.state.tick_count == 0

    async def test_initial_cost_update_waits_for_devices(self) -> None:
        publisher = _publisher()
        tracker = MagicMock()
        tracker.ready = False
        config = MeterConfig(tick_interval_seconds=3600, initial_cost_delay_seconds=0)
        loop = MeterLoop(config, _meter(), publisher, tracker)

        task = asyncio.create_task(loop.run())
        await asyncio.sleep(0.05)
        loop.stop()
        await asyncio.wait_for(task, timeout=2)
        publisher.publish_cost.assert_not_awaited()

    async def test_initial_cost_update_when_ready(self) -> None:
        publisher = _publisher()
        tracker = MagicMock()
        tracker.ready = True
        config = MeterConfig(tick_interval_seconds=3600, initial_cost_delay_seconds=0)
        loop = MeterLoop(config, _meter(), publisher, tracker)

        task = asyncio.create_task(loop.run())
        await asyncio.sleep(0.05)
        loop.stop()
        await asyncio.wait_for(task, timeout=2)
        publisher.publish_cost.assert_awaited_once()

    async def test_periodic_ticks(self) -> None:
        publisher = _publisher()
        config = MeterConfig(tick_interval_seconds=1, initial_cost_delay_seconds=3600)
        loop = MeterLoop(config, _meter(), publisher)

        task = asyncio.create_task(loop.run())
        await asyncio.sleep(1.3)
        loop.stop()
        await asyncio.wait_for(task, timeout=2)
        assert loop.state.tick_count == 1
        publisher.publish_cost.assert_awaited_once()
