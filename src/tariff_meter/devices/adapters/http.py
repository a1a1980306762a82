"""HTTP device registry adapter (REST listing + polled power readings)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from tariff_meter.config.schema import RegistryConfig
from tariff_meter.devices.base import DeviceSnapshot, PowerCallback

logger = logging.getLogger(__name__)

_DEVICES = "/devices"
_CAPABILITY = "/devices/{device_id}/capabilities/{capability}"


def _coerce_power(value: Any) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


class HttpDeviceRegistry:
    """Reads devices and their power from a home-automation REST API.

    Listing accepts either a JSON list of ``{id, name, power}`` objects or a
    mapping of id to device object carrying ``capabilitiesObj``. Power
    subscriptions are served by polling each subscribed device and invoking
    its callback when the value changes.
    """

    def __init__(self, config: RegistryConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        headers = {"Authorization": f"Bearer {config.token}"} if config.token else None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.request_timeout_seconds),
            headers=headers,
        )
        self._owns_client = client is None
        self._base_url = config.base_url.rstrip("/")
        self._callbacks: dict[str, list[PowerCallback]] = {}
        self._last_values: dict[str, float | None] = {}
        self._stop_event = asyncio.Event()

    async def list_devices_with_capability(self, capability: str) -> list[DeviceSnapshot]:
        resp = await self._client.get(f"{self._base_url}{_DEVICES}", params={"capability": capability})
        resp.raise_for_status()
        data = resp.json()

        items: list[tuple[str, dict]] = []
        if isinstance(data, dict):
            items = [(str(key), value) for key, value in data.items() if isinstance(value, dict)]
        elif isinstance(data, list):
            items = [(str(d.get("id", "")), d) for d in data if isinstance(d, dict)]

        devices = []
        for device_id, raw in items:
            capabilities = raw.get("capabilities")
            if isinstance(capabilities, list) and capability not in capabilities:
                logger.debug("[SKIP] %s (%s)", raw.get("name", device_id), device_id)
                continue
            if "power" in raw:
                power = _coerce_power(raw["power"])
            else:
                cap_obj = (raw.get("capabilitiesObj") or {}).get(capability) or {}
                power = _coerce_power(cap_obj.get("value"))
            devices.append(DeviceSnapshot(
                id=device_id, name=str(raw.get("name", device_id)), power=power,
            ))
        return devices

    def subscribe_power(self, device_id: str, callback: PowerCallback) -> None:
        self._callbacks.setdefault(device_id, []).append(callback)

    async def read_power(self, device_id: str) -> float | None:
        url = f"{self._base_url}{_CAPABILITY.format(device_id=device_id, capability=self._config.capability)}"
        resp = await self._client.get(url)
        resp.raise_for_status()
        body = resp.json()
        if not isinstance(body, dict):
            raise ValueError(f"unexpected power payload for {device_id}: {body!r}")
        value = body.get("value")
        return None if value is None else _coerce_power(value)

    async def poll_once(self) -> int:
        """Read every subscribed device once. Returns the number of changes delivered."""
        changes = 0
        for device_id, callbacks in list(self._callbacks.items()):
            try:
                value = await self.read_power(device_id)
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("Power poll failed for device %s: %s", device_id, e)
                continue
            except Exception:
                logger.exception("Power poll error for device %s", device_id)
                continue

            if device_id in self._last_values and self._last_values[device_id] == value:
                continue
            self._last_values[device_id] = value
            changes += 1
            for callback in callbacks:
                try:
                    callback(value)
                except Exception:
                    logger.exception("Power callback error for device %s", device_id)
        return changes

    async def run(self) -> None:
        """Poll subscribed devices until closed."""
        interval = self._config.poll_interval_seconds
        logger.info("Power polling starting (interval: %.1fs)", interval)
        self._stop_event.clear()
        while not self._stop_event.is_set():
            await self.poll_once()
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
                break
            except asyncio.TimeoutError:
                pass

    async def close(self) -> None:
        self._stop_event.set()
        if self._owns_client:
            await self._client.aclose()
