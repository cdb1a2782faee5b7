from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from eblu.cli.common import (
    build_session,
    load_settings_or_exit,
    start_session_or_exit,
)
from eblu.cli.render import build_device_table
from eblu.config import Settings
from eblu.utils.redaction import Redactor


async def _list_devices(
    settings: Settings, query: str, redact: bool, console: Console
) -> None:
    session = build_session(settings)
    await start_session_or_exit(session, console)

    devices = session.visible_devices(query)
    if not devices:
        if query.strip():
            console.print(f"No devices match '{query}'.")
        else:
            console.print("No paired devices.")
        return

    redactor = Redactor(enabled=redact)
    console.print(build_device_table(devices, redactor, "Paired Devices"))
    hidden = len(session.known_devices) - len(devices)
    if not query.strip() and hidden > 0:
        console.print(f"[dim]{hidden} more device(s); search to see them.[/dim]")


def list_devices(
    query: list[str] | None = typer.Argument(
        None, help="Search terms, matched against device name and type"
    ),
    redact: bool = typer.Option(
        False,
        "--redact",
        help="Redact addresses and firmware versions in output",
    ),
) -> None:
    """List paired devices, connected first."""
    settings = load_settings_or_exit()
    console = Console()
    asyncio.run(_list_devices(settings, " ".join(query or []), redact, console))


def register(app: typer.Typer) -> None:
    app.command("list")(list_devices)
