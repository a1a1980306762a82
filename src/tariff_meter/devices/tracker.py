"""Device discovery bootstrap with fixed-delay retry."""

from __future__ import annotations

import asyncio
import logging

from tariff_meter.devices.base import DeviceRegistry
from tariff_meter.devices.cache import DevicePowerCache

logger = logging.getLogger(__name__)


class DeviceTracker:
    """Discovers power-reporting devices and keeps the power cache current.

    The registry may not be available at start-up. Until it returns at least
    one device, discovery is retried every ``retry_seconds`` for as long as
    the tracker runs; meanwhile the cache stays empty and cost accrues at 0 W.
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        cache: DevicePowerCache,
        capability: str = "measure_power",
        retry_seconds: float = 30.0,
    ) -> None:
        self._registry = registry
        self._cache = cache
        self._capability = capability
        self._retry_seconds = retry_seconds
        self._ready = False
        self._attempts = 0
        self._stop_event = asyncio.Event()

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def attempts(self) -> int:
        return self._attempts

    async def bootstrap(self) -> bool:
        """Make one discovery attempt. Returns True once devices are tracked."""
        self._attempts += 1
        try:
            devices = await self._registry.list_devices_with_capability(self._capability)
        except Exception as e:
            logger.error("Device discovery failed (attempt %d): %s", self._attempts, e)
            return False

        if not devices:
            logger.warning(
                "No devices with %s returned (attempt %d), retrying in %.0fs",
                self._capability, self._attempts, self._retry_seconds,
            )
            return False

        for device in devices:
            self._cache.track(device)
            self._registry.subscribe_power(
                device.id,
                lambda value, device_id=device.id: self._cache.update_power(device_id, value),
            )
            logger.info("[POWER] %s (%s) initial=%.0fW", device.name, device.id, device.power)

        self._ready = True
        logger.info("Tracking %d power devices", len(devices))
        return True

    async def run(self) -> None:
        """Retry discovery until it succeeds or the tracker is stopped."""
        self._stop_event.clear()
        while not self._stop_event.is_set():
            if await self.bootstrap():
                return
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._retry_seconds)
                break
            except asyncio.TimeoutError:
                pass

    def stop(self) -> None:
        self._stop_event.set()
