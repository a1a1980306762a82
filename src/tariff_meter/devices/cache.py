"""Thread-safe cache of the latest power reading per device."""

from __future__ import annotations

import threading

from tariff_meter.devices.base import DeviceSnapshot


class DevicePowerCache:
    """Latest power per device, updated by registry callbacks.

    Readers take an immutable snapshot so a tick never observes a
    half-applied update.
    """

    def __init__(self) -> None:
        self._devices: dict[str, DeviceSnapshot] = {}
        self._lock = threading.Lock()

    def track(self, device: DeviceSnapshot) -> None:
        with self._lock:
            self._devices[device.id] = device

    def update_power(self, device_id: str, power: float | None) -> None:
        """Record a new reading; None counts as 0 W. Unknown ids are ignored."""
        with self._lock:
            current = self._devices.get(device_id)
            if current is None:
                return
            self._devices[device_id] = DeviceSnapshot(
                id=current.id, name=current.name, power=power or 0.0,
            )

    def clear(self) -> None:
        with self._lock:
            self._devices.clear()

    def snapshot(self) -> tuple[DeviceSnapshot, ...]:
        with self._lock:
            return tuple(self._devices.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._devices)
