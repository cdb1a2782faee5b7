"""eblu - easy Bluetooth device management on top of blueutil."""

from __future__ import annotations

from importlib.metadata import version

from .config import DisplayConfig, Settings, get_settings
from .core import BluetoothSession, DeviceState, Reconciler, matches
from .models import Device, DiscoveredDevice

__all__ = [
    "BluetoothSession",
    "Device",
    "DeviceState",
    "DiscoveredDevice",
    "DisplayConfig",
    "Reconciler",
    "Settings",
    "__version__",
    "get_settings",
    "matches",
]

__version__ = version("eblu")
