from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from eblu.config import Settings, get_settings, resolve_config_path
from eblu.core import ActionResult, BluetoothSession, resolve_device
from eblu.errors import AmbiguousDevice, DeviceNotFound, ToolUnavailable
from eblu.models import Device


def load_settings_or_exit() -> Settings:
    try:
        return get_settings()
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc


def resolve_config_path_or_exit(allow_missing: bool = False) -> tuple[Path, bool]:
    try:
        return resolve_config_path(allow_missing=allow_missing)
    except FileNotFoundError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc


def build_session(settings: Settings) -> BluetoothSession:
    return BluetoothSession(settings)


def report(console: Console, result: ActionResult) -> None:
    if result.success:
        console.print(f"[green]✓[/green] {result.message}")
    elif result.error is not None and str(result.error) != result.message:
        console.print(f"[red]✗[/red] {result.message}: {result.error}")
    else:
        console.print(f"[red]✗[/red] {result.message}")


async def start_session_or_exit(session: BluetoothSession, console: Console) -> None:
    try:
        result = await session.start()
    except ToolUnavailable as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc

    if not result.success:
        report(console, result)
        raise typer.Exit(1)


def resolve_device_or_exit(
    session: BluetoothSession, target: str, console: Console
) -> Device:
    try:
        return resolve_device(session.known_devices, target)
    except (DeviceNotFound, AmbiguousDevice) as exc:
        console.print(f"[yellow]![/yellow] {exc}")
        raise typer.Exit(1) from exc
