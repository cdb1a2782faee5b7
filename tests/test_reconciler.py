"""Tests for the reconciler's ownership of known and discovered devices."""

import asyncio
import json

import pytest

from conftest import (
    FIXED_NOW,
    FakeBlueutil,
    FakeSnapshotSource,
    make_reconciler,
    snapshot_json,
)

from eblu.errors import CommandFailed, ConcurrentScanRejected, SourceUnparsable


def test_refresh_orders_connected_first(bose_and_keyboard):
    reconciler = make_reconciler(FakeSnapshotSource(bose_and_keyboard))

    devices = asyncio.run(reconciler.refresh_known_devices())

    assert [(d.name, d.connected) for d in devices] == [
        ("Bose QC35", True),
        ("Keyboard", False),
    ]
    assert devices[0].device_type == "Headphones"
    assert devices[0].last_connected_at == FIXED_NOW
    assert devices[1].last_connected_at is None


def test_refresh_sorts_names_case_insensitively():
    text = snapshot_json(
        connected=[
            {"zebra speaker": {"device_address": "01"}},
            {"Apple Pencil": {"device_address": "02"}},
        ],
        disconnected=[
            {"mouse": {"device_address": "03"}},
            {"Magic Keyboard": {"device_address": "04"}},
            {"AirPods": {"device_address": "05"}},
        ],
    )
    reconciler = make_reconciler(FakeSnapshotSource(text))

    devices = asyncio.run(reconciler.refresh_known_devices())

    assert [d.name for d in devices] == [
        "Apple Pencil",
        "zebra speaker",
        "AirPods",
        "Magic Keyboard",
        "mouse",
    ]


def test_refresh_removes_duplicate_addresses():
    text = snapshot_json(
        connected=[{"Headset": {"device_address": "aa-bb-cc-dd-ee-ff"}}],
        disconnected=[
            {"Headset (old)": {"device_address": "AA:BB:CC:DD:EE:FF"}},
            {"Mouse": {"device_address": "01"}},
            {"Mouse copy": {"device_address": "01"}},
        ],
    )
    reconciler = make_reconciler(FakeSnapshotSource(text))

    devices = asyncio.run(reconciler.refresh_known_devices())

    addresses = [d.address for d in devices]
    assert len(addresses) == len(set(addresses))
    assert reconciler.get_known("AA:BB:CC:DD:EE:FF").connected is True
    assert reconciler.get_known("01").name == "Mouse"


def test_refresh_is_idempotent(bose_and_keyboard):
    reconciler = make_reconciler(FakeSnapshotSource(bose_and_keyboard))

    first = asyncio.run(reconciler.refresh_known_devices())
    second = asyncio.run(reconciler.refresh_known_devices())

    assert first == second
    assert first is not second


def test_refresh_replaces_the_whole_set(bose_and_keyboard):
    later = snapshot_json(disconnected=[{"Bose QC35": {"device_address": "AA:BB"}}])
    reconciler = make_reconciler(FakeSnapshotSource(bose_and_keyboard, later))

    asyncio.run(reconciler.refresh_known_devices())
    devices = asyncio.run(reconciler.refresh_known_devices())

    assert len(devices) == 1
    assert devices[0].connected is False
    assert devices[0].last_connected_at is None
    assert reconciler.get_known("CC:DD") is None


@pytest.mark.parametrize(
    "failure",
    [
        "{not json",
        '{"unexpected": true}',
        CommandFailed(["system_profiler"], 1, "boom"),
    ],
)
def test_failed_refresh_keeps_last_good_snapshot(bose_and_keyboard, failure):
    outputs = [bose_and_keyboard, failure]
    if isinstance(failure, str):
        expected_error = SourceUnparsable
    else:
        expected_error = CommandFailed
    reconciler = make_reconciler(FakeSnapshotSource(*outputs))
    good = asyncio.run(reconciler.refresh_known_devices())

    with pytest.raises(expected_error):
        asyncio.run(reconciler.refresh_known_devices())

    assert reconciler.known_devices == good


def test_stale_refresh_result_is_discarded(bose_and_keyboard):
    newer = snapshot_json(disconnected=[{"Keyboard": {"device_address": "CC:DD"}}])

    class SlowFirstSource:
        def __init__(self):
            self.release_first = asyncio.Event()
            self.calls = 0

        async def fetch(self):
            self.calls += 1
            if self.calls == 1:
                await self.release_first.wait()
                return bose_and_keyboard
            return newer

    async def scenario():
        source = SlowFirstSource()
        reconciler = make_reconciler(source)
        first = asyncio.create_task(reconciler.refresh_known_devices())
        await asyncio.sleep(0)
        await reconciler.refresh_known_devices()
        source.release_first.set()
        await first
        return reconciler

    reconciler = asyncio.run(scenario())

    assert [d.name for d in reconciler.known_devices] == ["Keyboard"]


def test_listeners_are_notified_until_unsubscribed(bose_and_keyboard):
    reconciler = make_reconciler(FakeSnapshotSource(bose_and_keyboard))
    calls = []
    unsubscribe = reconciler.subscribe(
        lambda: calls.append(len(reconciler.known_devices))
    )

    asyncio.run(reconciler.refresh_known_devices())
    unsubscribe()
    asyncio.run(reconciler.refresh_known_devices())

    assert calls == [2]


def test_discovery_excludes_known_addresses(bose_and_keyboard):
    inquiry = json.dumps(
        [
            {"address": "AA:BB", "name": "Bose QC35", "rssi": -40},
            {"address": "11-22-33-44-55-66", "name": "JBL Flip", "rssi": -70},
            {"address": "11:22:33:44:55:66", "name": "JBL Flip"},
            {"address": "77-88-99-aa-bb-cc"},
        ]
    )
    tool = FakeBlueutil(inquiry_output=inquiry)
    reconciler = make_reconciler(FakeSnapshotSource(bose_and_keyboard), tool)

    asyncio.run(reconciler.refresh_known_devices())
    found = asyncio.run(reconciler.start_discovery())

    assert [(d.address, d.name) for d in found] == [
        ("11:22:33:44:55:66", "JBL Flip"),
        ("77:88:99:AA:BB:CC", "Unknown Device"),
    ]
    assert found[0].signal_strength == "-70"
    assert tool.inquiry_calls == [10]
    assert reconciler.scanning is False


def test_second_scan_is_rejected_while_scanning(bose_and_keyboard):
    tool = FakeBlueutil(inquiry_output='[{"address": "11:22"}]')

    async def scenario():
        tool.scan_gate = asyncio.Event()
        reconciler = make_reconciler(FakeSnapshotSource(bose_and_keyboard), tool)
        first = asyncio.create_task(reconciler.start_discovery(5))
        await asyncio.sleep(0)
        assert reconciler.scanning is True
        with pytest.raises(ConcurrentScanRejected):
            await reconciler.start_discovery(5)
        tool.scan_gate.set()
        return await first

    found = asyncio.run(scenario())

    assert len(found) == 1
    assert tool.inquiry_calls == [5]


def test_failed_scan_keeps_previous_discovered_set(bose_and_keyboard):
    tool = FakeBlueutil(inquiry_output='[{"address": "11:22"}]')
    reconciler = make_reconciler(FakeSnapshotSource(bose_and_keyboard), tool)
    previous = asyncio.run(reconciler.start_discovery())

    tool.inquiry_output = "garbage"
    with pytest.raises(SourceUnparsable):
        asyncio.run(reconciler.start_discovery())

    assert reconciler.discovered_devices == previous
    assert reconciler.scanning is False


def test_drop_discovered():
    tool = FakeBlueutil(inquiry_output='[{"address": "11:22"}, {"address": "33:44"}]')
    reconciler = make_reconciler(FakeSnapshotSource(snapshot_json()), tool)
    asyncio.run(reconciler.start_discovery())

    assert reconciler.drop_discovered("11:22") is True
    assert reconciler.drop_discovered("11:22") is False
    assert [d.address for d in reconciler.discovered_devices] == ["33:44"]
