"""Data models for eblu."""

from eblu.models.device import (
    NEW_DEVICE_TYPE,
    UNKNOWN_DEVICE_NAME,
    Device,
    DiscoveredDevice,
)
from eblu.models.sources import (
    BluetoothDataType,
    InquiryRecord,
    PairedRecordFields,
    PairedSnapshot,
)

__all__ = [
    "NEW_DEVICE_TYPE",
    "UNKNOWN_DEVICE_NAME",
    "BluetoothDataType",
    "Device",
    "DiscoveredDevice",
    "InquiryRecord",
    "PairedRecordFields",
    "PairedSnapshot",
]
