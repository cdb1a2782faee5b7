from __future__ import annotations

from collections.abc import Sequence

from rich.table import Table

from eblu.models import Device, DiscoveredDevice
from eblu.utils.redaction import Redactor


def _signal(value: str | None) -> str:
    return f"{value}dBm" if value else ""


def device_status(device: Device) -> str:
    return "[green]Connected[/green]" if device.connected else "Disconnected"


def build_device_table(
    devices: Sequence[Device],
    redactor: Redactor | None = None,
    title: str | None = None,
) -> Table:
    redactor = redactor or Redactor(enabled=False)
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Battery")
    table.add_column("Signal")
    table.add_column("FW")
    table.add_column("Address", style="dim")

    for device in devices:
        table.add_row(
            device.name,
            device.device_type or "Unknown Device",
            device_status(device),
            device.battery_level or "",
            _signal(device.signal_strength),
            redactor.redact_version(device.firmware_version),
            redactor.redact_address(device.address),
        )
    return table


def build_discovered_table(
    devices: Sequence[DiscoveredDevice], redactor: Redactor | None = None
) -> Table:
    redactor = redactor or Redactor(enabled=False)
    table = Table(title="Discovered Devices")
    table.add_column("Name", style="cyan")
    table.add_column("Signal")
    table.add_column("Address", style="dim")

    for device in devices:
        table.add_row(
            device.name,
            _signal(device.signal_strength),
            redactor.redact_address(device.address),
        )
    return table
