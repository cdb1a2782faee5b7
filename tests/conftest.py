from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from typing import Any

import pytest

from eblu.config import get_settings
from eblu.core import ControlVerb, Reconciler
from eblu.errors import CommandFailed

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _isolate_settings_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("EBLU_CONFIG", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def snapshot_json(
    connected: list[dict[str, Any]] | None = None,
    disconnected: list[dict[str, Any]] | None = None,
) -> str:
    return json.dumps(
        {
            "SPBluetoothDataType": [
                {
                    "controller_properties": {"controller_state": "attrib_on"},
                    "device_connected": connected or [],
                    "device_not_connected": disconnected or [],
                }
            ]
        }
    )


class FakeSnapshotSource:
    """Returns queued outputs in order, repeating the last one."""

    def __init__(self, *outputs: str | Exception) -> None:
        self.outputs = list(outputs)
        self.calls = 0

    async def fetch(self) -> str:
        self.calls += 1
        index = min(self.calls, len(self.outputs)) - 1
        output = self.outputs[index]
        if isinstance(output, Exception):
            raise output
        return output


class FakeBlueutil:
    """Records control calls and replays inquiry results."""

    def __init__(
        self,
        inquiry_output: str = "[]",
        failing: set[ControlVerb] | None = None,
        on_control: Any = None,
    ) -> None:
        self.inquiry_output = inquiry_output
        self.failing = failing or set()
        self.on_control = on_control
        self.control_calls: list[tuple[ControlVerb, str]] = []
        self.inquiry_calls: list[int] = []
        self.scan_gate: asyncio.Event | None = None
        self.control_gates: dict[str, asyncio.Event] = {}

    async def inquiry(self, duration: int) -> str:
        self.inquiry_calls.append(duration)
        if self.scan_gate is not None:
            await self.scan_gate.wait()
        return self.inquiry_output

    async def control(self, verb: ControlVerb, address: str) -> None:
        self.control_calls.append((verb, address))
        if self.on_control is not None:
            self.on_control(verb, address)
        gate = self.control_gates.get(address)
        if gate is not None:
            await gate.wait()
        if verb in self.failing:
            raise CommandFailed(["blueutil", verb.flag, address], 1, "failed")


def make_reconciler(
    source: FakeSnapshotSource, tool: FakeBlueutil | None = None
) -> Reconciler:
    return Reconciler(source, tool or FakeBlueutil(), clock=lambda: FIXED_NOW)


@pytest.fixture
def bose_and_keyboard() -> str:
    return snapshot_json(
        connected=[
            {
                "Bose QC35": {
                    "device_address": "AA:BB",
                    "device_minorType": "Headphones",
                    "device_batteryLevelMain": "80%",
                }
            }
        ],
        disconnected=[{"Keyboard": {"device_address": "CC:DD"}}],
    )
