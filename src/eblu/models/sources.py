"""Schemas for the raw JSON produced by the external data sources."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class PairedRecordFields(BaseModel):
    """Attributes of one entry in a system_profiler device group."""

    model_config = {"extra": "ignore"}

    device_address: str = Field(min_length=1)
    device_minorType: str | None = None
    device_batteryLevelMain: str | None = None
    device_rssi: str | None = None
    device_vendorID: str | None = None
    device_productID: str | None = None
    device_firmwareVersion: str | None = None

    @field_validator("device_address", mode="before")
    @classmethod
    def _strip_address(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator(
        "device_minorType",
        "device_batteryLevelMain",
        "device_rssi",
        "device_vendorID",
        "device_productID",
        "device_firmwareVersion",
        mode="before",
    )
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return _blank_to_none(value)


class InquiryRecord(BaseModel):
    """One entry of `blueutil --inquiry --format json`."""

    model_config = {"extra": "ignore"}

    address: str = Field(min_length=1)
    name: str | None = None
    rssi: int | float | str | None = None

    @field_validator("address", mode="before")
    @classmethod
    def _strip_address(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("name", "rssi", mode="before")
    @classmethod
    def _optional(cls, value: Any) -> Any:
        return _blank_to_none(value)


class BluetoothDataType(BaseModel):
    """The single controller entry of `SPBluetoothDataType`."""

    model_config = {"extra": "ignore"}

    device_connected: list[Any] = Field(default_factory=list)
    device_not_connected: list[Any] = Field(default_factory=list)

    @field_validator("device_connected", "device_not_connected", mode="before")
    @classmethod
    def _null_group(cls, value: Any) -> Any:
        return [] if value is None else value


class PairedSnapshot(BaseModel):
    """Top level of `system_profiler SPBluetoothDataType -json`."""

    model_config = {"extra": "ignore"}

    SPBluetoothDataType: list[BluetoothDataType]
