"""Canonical device entities."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

UNKNOWN_DEVICE_NAME = "Unknown Device"
NEW_DEVICE_TYPE = "New Device"


class Device(BaseModel):
    """A paired device, as reported by the latest snapshot."""

    model_config = {"frozen": True, "extra": "forbid"}

    address: str
    name: str
    connected: bool = False
    last_connected_at: datetime | None = None
    device_type: str | None = None
    battery_level: str | None = None
    signal_strength: str | None = None
    vendor_id: str | None = None
    product_id: str | None = None
    firmware_version: str | None = None


class DiscoveredDevice(BaseModel):
    """A device seen by an inquiry scan that is not paired yet."""

    model_config = {"frozen": True, "extra": "forbid"}

    address: str
    name: str = UNKNOWN_DEVICE_NAME
    device_type: str = NEW_DEVICE_TYPE
    signal_strength: str | None = None
