"""Tests for record normalization."""

import pytest

from conftest import FIXED_NOW, snapshot_json

from eblu.core.normalizer import (
    normalize_address,
    normalize_discovered_record,
    normalize_inquiry,
    normalize_paired_record,
    normalize_snapshot,
    parse_snapshot,
)
from eblu.errors import MalformedRecordError, SourceUnparsable


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("aa-bb-cc-dd-ee-ff", "AA:BB:CC:DD:EE:FF"),
        ("AA:BB:CC:DD:EE:FF", "AA:BB:CC:DD:EE:FF"),
        (" aabb.ccdd.eeff ", "AA:BB:CC:DD:EE:FF"),
        ("aa:bb", "AA:BB"),
    ],
)
def test_normalize_address(raw, expected):
    assert normalize_address(raw) == expected


def test_connected_record_has_all_attributes():
    record = {
        "AirPods": {
            "device_address": "11:22:33:44:55:66",
            "device_minorType": "Headphones",
            "device_batteryLevelMain": "85%",
            "device_rssi": "-52",
            "device_vendorID": "0x004C",
            "device_productID": "0x200E",
            "device_firmwareVersion": "6.1.0",
            "device_services": "ignored",
        }
    }

    device = normalize_paired_record(record, connected=True, now=FIXED_NOW)

    assert device.name == "AirPods"
    assert device.address == "11:22:33:44:55:66"
    assert device.connected is True
    assert device.last_connected_at == FIXED_NOW
    assert device.device_type == "Headphones"
    assert device.battery_level == "85%"
    assert device.signal_strength == "-52"
    assert device.vendor_id == "0x004C"
    assert device.product_id == "0x200E"
    assert device.firmware_version == "6.1.0"


def test_disconnected_record_leaves_unknowns_absent():
    record = {"Keyboard": {"device_address": "CC:DD", "device_minorType": ""}}

    device = normalize_paired_record(record, connected=False, now=FIXED_NOW)

    assert device.connected is False
    assert device.last_connected_at is None
    assert device.device_type is None
    assert device.battery_level is None
    assert device.signal_strength is None


@pytest.mark.parametrize(
    "record",
    [
        {"Keyboard": {"device_minorType": "Keyboard"}},
        {"Keyboard": {"device_address": ""}},
        {"Keyboard": "CC:DD"},
        {"One": {"device_address": "A"}, "Two": {"device_address": "B"}},
        {},
        ["Keyboard"],
    ],
)
def test_malformed_paired_records_are_rejected(record):
    with pytest.raises(MalformedRecordError):
        normalize_paired_record(record, connected=False, now=FIXED_NOW)


def test_discovered_record_defaults():
    device = normalize_discovered_record({"address": "aa-bb-cc-dd-ee-ff", "rssi": -61})

    assert device.address == "AA:BB:CC:DD:EE:FF"
    assert device.name == "Unknown Device"
    assert device.device_type == "New Device"
    assert device.signal_strength == "-61"


def test_discovered_record_without_rssi():
    device = normalize_discovered_record({"address": "11-22", "name": "Speaker"})

    assert device.name == "Speaker"
    assert device.signal_strength is None


def test_discovered_record_without_address_is_rejected():
    with pytest.raises(MalformedRecordError):
        normalize_discovered_record({"name": "Speaker"})


def test_snapshot_drops_only_malformed_records():
    text = snapshot_json(
        connected=[{"Mouse": {"device_address": "01:02"}}],
        disconnected=[
            {"Broken": {"device_minorType": "Speaker"}},
            {"Keyboard": {"device_address": "CC:DD"}},
        ],
    )

    devices = normalize_snapshot(text, FIXED_NOW)

    assert [device.name for device in devices] == ["Mouse", "Keyboard"]


def test_snapshot_with_null_groups_is_empty():
    text = '{"SPBluetoothDataType": [{"device_connected": null}]}'

    groups = parse_snapshot(text)

    assert groups.device_connected == []
    assert groups.device_not_connected == []


def test_snapshot_without_controller_entry_is_empty():
    assert normalize_snapshot('{"SPBluetoothDataType": []}', FIXED_NOW) == []


@pytest.mark.parametrize(
    "text",
    ["not json", "[]", '{"SPAudioDataType": []}', '{"SPBluetoothDataType": {}}'],
)
def test_unparsable_snapshot(text):
    with pytest.raises(SourceUnparsable):
        parse_snapshot(text)


def test_unparsable_inquiry():
    with pytest.raises(SourceUnparsable):
        normalize_inquiry('{"address": "AA"}')


def test_inquiry_drops_malformed_records():
    devices = normalize_inquiry('[{"address": "AA:01"}, {"name": "x"}, "junk"]')

    assert [device.address for device in devices] == ["AA:01"]
