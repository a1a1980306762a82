"""Tariff Meter: day/night tariff tracking and live electricity cost accounting."""

try:
    from importlib.metadata import version as _pkg_version
    __version__ = _pkg_version("tariff-meter")
except Exception:
    __version__ = "dev"
