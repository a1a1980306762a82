"""Protocol for device registries that report live power readings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

# Receives the new power reading in watts (None when the device reports nothing)
PowerCallback = Callable[[float | None], None]


@dataclass(frozen=True)
class DeviceSnapshot:
    """Power reading of one tracked device at a point in time."""

    id: str
    name: str
    power: float = 0.0

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "power": self.power}


@runtime_checkable
class DeviceRegistry(Protocol):
    """Protocol for device registries.

    Implementations: HttpDeviceRegistry.
    """

    async def list_devices_with_capability(self, capability: str) -> list[DeviceSnapshot]:
        """List devices exposing ``capability`` with their current reading."""
        ...

    def subscribe_power(self, device_id: str, callback: PowerCallback) -> None:
        """Deliver future power readings of ``device_id`` to ``callback``."""
        ...

    async def close(self) -> None:
        """Stop delivering updates and release connections."""
        ...
