"""Async meter loop: one-minute tick plus out-of-band tariff refreshes."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Coroutine

from tariff_meter.alerts.events import AlertEvent
from tariff_meter.config.schema import MeterConfig
from tariff_meter.devices.tracker import DeviceTracker
from tariff_meter.engine import TariffMeter
from tariff_meter.logging.context import tick_context
from tariff_meter.mqtt.publisher import MeterPublisher

logger = logging.getLogger(__name__)

EventCallback = Callable[[list[AlertEvent]], Coroutine[Any, Any, None]]


@dataclass
class LoopState:
    """Snapshot of the meter loop state."""

    tick_count: int = 0
    refresh_count: int = 0
    last_tick_at: datetime | None = None
    last_refresh_at: datetime | None = None
    is_running: bool = False


class MeterLoop:
    """Drives the meter.

    On start the tariff is refreshed immediately and the first cost update
    follows after ``initial_cost_delay_seconds`` if devices are already
    tracked. Afterwards every tick (default 60s):
    1. Refresh tariff, season and rate; publish them
    2. Integrate power since the previous tick; publish cost figures
    3. Publish alert events

    ``request_refresh()`` schedules an extra tariff refresh outside the tick
    cadence, used when settings change.
    """

    def __init__(
        self,
        config: MeterConfig,
        meter: TariffMeter,
        publisher: MeterPublisher | None = None,
        tracker: DeviceTracker | None = None,
    ) -> None:
        self._config = config
        self._meter = meter
        self._publisher = publisher
        self._tracker = tracker
        self._state = LoopState()
        self._stop_event = asyncio.Event()
        self._refresh_event = asyncio.Event()
        self._on_events: list[EventCallback] = []

    @property
    def state(self) -> LoopState:
        return self._state

    def add_event_listener(self, callback: EventCallback) -> None:
        self._on_events.append(callback)

    def update_config(self, config: MeterConfig) -> None:
        self._config = config

    def request_refresh(self) -> None:
        """Ask for a tariff refresh as soon as the loop gets control."""
        self._refresh_event.set()

    async def run(self) -> None:
        """Run until stopped."""
        self._state.is_running = True
        self._stop_event.clear()
        interval = self._config.tick_interval_seconds
        logger.info("Meter loop starting (interval: %ds)", interval)

        await self.refresh_tariff()
        helpers = [
            asyncio.create_task(self._refresh_listener()),
            asyncio.create_task(self._initial_cost_update()),
        ]

        try:
            while not self._stop_event.is_set():
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
                    break
                except asyncio.TimeoutError:
                    pass
                await self._tick()
        finally:
            for task in helpers:
                task.cancel()
            for task in helpers:
                with contextlib.suppress(asyncio.CancelledError):
                    await task
            self._state.is_running = False
            logger.info("Meter loop stopped after %d ticks", self._state.tick_count)

    def stop(self) -> None:
        self._stop_event.set()

    async def tick_once(self, now: datetime | None = None) -> None:
        """Execute a single tick (for testing)."""
        await self._tick(now)

    async def refresh_tariff(self, now: datetime | None = None) -> None:
        """Refresh and publish tariff values; failures are logged only."""
        self._state.refresh_count += 1
        self._state.last_refresh_at = now or datetime.now()
        try:
            reading, events = self._meter.refresh_tariff(now)
            if self._publisher:
                await self._publisher.publish_tariff(reading)
            await self._dispatch(events)
        except Exception:
            logger.exception("Failed to update tariff values")

    async def update_cost(self, now: datetime | None = None) -> None:
        """Integrate power, publish cost figures and cost alerts; failures are logged only."""
        try:
            reading, events = self._meter.update_cost(now)
            if self._publisher:
                await self._publisher.publish_cost(reading)
            await self._dispatch(events)
        except Exception:
            logger.exception("Failed to update cost tracking")

    async def _tick(self, now: datetime | None = None) -> None:
        self._state.tick_count += 1
        self._state.last_tick_at = now or datetime.now()
        tick_start = time.monotonic()
        with tick_context(self._state.tick_count):
            await self.refresh_tariff(now)
            await self.update_cost(now)
            logger.debug("Tick done in %dms", int((time.monotonic() - tick_start) * 1000))

    async def _dispatch(self, events: list[AlertEvent]) -> None:
        if not events:
            return
        if self._publisher:
            await self._publisher.publish_events(events)
        for cb in self._on_events:
            try:
                await cb(events)
            except Exception:
                logger.exception("Event callback error")

    async def _refresh_listener(self) -> None:
        while not self._stop_event.is_set():
            await self._refresh_event.wait()
            self._refresh_event.clear()
            logger.info("Settings changed, updating tariff values")
            await self.refresh_tariff()

    async def _initial_cost_update(self) -> None:
        await asyncio.sleep(self._config.initial_cost_delay_seconds)
        if self._tracker is not None and not self._tracker.ready:
            logger.info("Devices not ready for initial cost tracking, will start on next interval")
            return
        await self.update_cost()
