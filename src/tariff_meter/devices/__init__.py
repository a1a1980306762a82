"""Device registry boundary: discovery, power subscriptions and the power cache."""

from tariff_meter.devices.base import DeviceRegistry, DeviceSnapshot
from tariff_meter.devices.cache import DevicePowerCache
from tariff_meter.devices.tracker import DeviceTracker

__all__ = ["DevicePowerCache", "DeviceRegistry", "DeviceSnapshot", "DeviceTracker"]
