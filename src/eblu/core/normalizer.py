"""Turn raw source records into canonical device entities."""

from __future__ import annotations

import json
import logging
import string
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from eblu.errors import MalformedRecordError, SourceUnparsable
from eblu.models import (
    UNKNOWN_DEVICE_NAME,
    BluetoothDataType,
    Device,
    DiscoveredDevice,
    InquiryRecord,
    PairedRecordFields,
    PairedSnapshot,
)

logger = logging.getLogger(__name__)


def normalize_address(value: str) -> str:
    """Return the canonical `AA:BB:CC:DD:EE:FF` form of a hardware address.

    system_profiler reports colon separated upper case addresses while
    blueutil uses lower case with dashes. Values that are not 48-bit
    addresses are only stripped and upper-cased.
    """
    stripped = value.strip()
    cleaned = stripped.replace(":", "").replace("-", "").replace(".", "")
    if len(cleaned) == 12 and all(ch in string.hexdigits for ch in cleaned):
        pairs = [cleaned[i : i + 2] for i in range(0, 12, 2)]
        return ":".join(pair.upper() for pair in pairs)
    return stripped.upper()


def _validation_reason(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"]) or "record"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def normalize_paired_record(
    record: Any, *, connected: bool, now: datetime
) -> Device:
    """Build a Device from one `{name: {device_address: ...}}` group entry."""
    if not isinstance(record, Mapping) or len(record) != 1:
        raise MalformedRecordError(
            "paired record must be an object with exactly one device name"
        )

    [(name, fields)] = record.items()
    if not isinstance(fields, Mapping):
        raise MalformedRecordError(f"paired record '{name}' has no attributes")

    try:
        raw = PairedRecordFields.model_validate(fields)
    except ValidationError as exc:
        raise MalformedRecordError(
            f"paired record '{name}': {_validation_reason(exc)}"
        ) from exc

    return Device(
        address=normalize_address(raw.device_address),
        name=str(name),
        connected=connected,
        last_connected_at=now if connected else None,
        device_type=raw.device_minorType,
        battery_level=raw.device_batteryLevelMain,
        signal_strength=raw.device_rssi,
        vendor_id=raw.device_vendorID,
        product_id=raw.device_productID,
        firmware_version=raw.device_firmwareVersion,
    )


def normalize_discovered_record(record: Any) -> DiscoveredDevice:
    """Build a DiscoveredDevice from one inquiry result."""
    if not isinstance(record, Mapping):
        raise MalformedRecordError("inquiry record must be an object")

    try:
        raw = InquiryRecord.model_validate(record)
    except ValidationError as exc:
        raise MalformedRecordError(
            f"inquiry record: {_validation_reason(exc)}"
        ) from exc

    rssi = raw.rssi
    if isinstance(rssi, float) and rssi.is_integer():
        rssi = int(rssi)

    return DiscoveredDevice(
        address=normalize_address(raw.address),
        name=raw.name or UNKNOWN_DEVICE_NAME,
        signal_strength=None if rssi is None else str(rssi),
    )


def _decode_json(text: str, source: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise SourceUnparsable(f"{source} output is not valid JSON: {exc}") from exc


def parse_snapshot(text: str) -> BluetoothDataType:
    """Validate paired-snapshot output and return its device groups."""
    data = _decode_json(text, "paired-device snapshot")
    try:
        snapshot = PairedSnapshot.model_validate(data)
    except ValidationError as exc:
        raise SourceUnparsable(
            f"paired-device snapshot has unexpected shape: {_validation_reason(exc)}"
        ) from exc

    if not snapshot.SPBluetoothDataType:
        return BluetoothDataType()
    return snapshot.SPBluetoothDataType[0]


def parse_inquiry(text: str) -> list[Any]:
    """Validate discovery-scan output and return its raw records."""
    data = _decode_json(text, "discovery scan")
    if not isinstance(data, list):
        raise SourceUnparsable("discovery scan output is not a JSON array")
    return data


def normalize_snapshot(text: str, now: datetime) -> list[Device]:
    """Normalize every record of a snapshot, dropping malformed ones."""
    groups = parse_snapshot(text)
    devices: list[Device] = []
    for connected, records in (
        (True, groups.device_connected),
        (False, groups.device_not_connected),
    ):
        for record in records:
            try:
                devices.append(
                    normalize_paired_record(record, connected=connected, now=now)
                )
            except MalformedRecordError as exc:
                logger.warning("Dropping paired device record: %s", exc)
    return devices


def normalize_inquiry(text: str) -> list[DiscoveredDevice]:
    """Normalize every record of an inquiry result, dropping malformed ones."""
    devices: list[DiscoveredDevice] = []
    for record in parse_inquiry(text):
        try:
            devices.append(normalize_discovered_record(record))
        except MalformedRecordError as exc:
            logger.warning("Dropping discovered device record: %s", exc)
    return devices
