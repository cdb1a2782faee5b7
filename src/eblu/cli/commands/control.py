from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import typer
from rich.console import Console

from eblu.cli.common import (
    build_session,
    load_settings_or_exit,
    report,
    resolve_device_or_exit,
    start_session_or_exit,
)
from eblu.config import Settings
from eblu.core import ActionResult, BluetoothSession
from eblu.core.normalizer import normalize_address

TargetArgument = typer.Argument(..., help="Device address or a search that names it")

Action = Callable[[BluetoothSession, str], Awaitable[ActionResult]]


async def _change_connection(
    settings: Settings, target: str, action: Action, console: Console
) -> None:
    session = build_session(settings)
    await start_session_or_exit(session, console)
    device = resolve_device_or_exit(session, target, console)

    result = await action(session, device.address)
    report(console, result)

    with console.status("Waiting for the device to settle..."):
        await session.settle()

    current = session.reconciler.get_known(device.address)
    if current is None:
        console.print(f"{device.name} is no longer paired")
    else:
        status = "connected" if current.connected else "disconnected"
        console.print(f"{current.name} is {status}")

    if not result.success:
        raise typer.Exit(1)


def _run_connection_command(target: str, action: Action) -> None:
    settings = load_settings_or_exit()
    console = Console()
    asyncio.run(_change_connection(settings, target, action, console))


def connect(target: str = TargetArgument) -> None:
    """Connect a paired device."""
    _run_connection_command(target, BluetoothSession.connect)


def disconnect(target: str = TargetArgument) -> None:
    """Disconnect a paired device."""
    _run_connection_command(target, BluetoothSession.disconnect)


def toggle(target: str = TargetArgument) -> None:
    """Connect a disconnected device, or disconnect a connected one."""
    _run_connection_command(target, BluetoothSession.toggle_connection)


async def _pair(
    settings: Settings, address: str, name: str | None, console: Console
) -> None:
    session = build_session(settings)
    await start_session_or_exit(session, console)

    with console.status(f"Pairing with {name or address}..."):
        result = await session.pair(normalize_address(address), name)

    report(console, result)
    if not result.success:
        raise typer.Exit(1)


def pair(
    address: str = typer.Argument(..., help="Address of a discovered device"),
    name: str | None = typer.Option(None, "--name", help="Name used in messages"),
) -> None:
    """Pair with a device found by 'eblu scan'."""
    settings = load_settings_or_exit()
    console = Console()
    asyncio.run(_pair(settings, address, name, console))


async def _forget(
    settings: Settings, target: str, assume_yes: bool, console: Console
) -> None:
    session = build_session(settings)
    await start_session_or_exit(session, console)
    device = resolve_device_or_exit(session, target, console)

    confirmed = assume_yes or typer.confirm(
        f'Are you sure you want to forget "{device.name}"?', default=False
    )
    if not confirmed:
        console.print("Cancelled.")
        return

    result = await session.forget(device.address, confirmed=confirmed)
    report(console, result)
    if not result.success:
        raise typer.Exit(1)


def forget(
    target: str = TargetArgument,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Unpair a device."""
    settings = load_settings_or_exit()
    console = Console()
    asyncio.run(_forget(settings, target, yes, console))


def register(app: typer.Typer) -> None:
    app.command()(connect)
    app.command()(disconnect)
    app.command()(toggle)
    app.command()(pair)
    app.command()(forget)
