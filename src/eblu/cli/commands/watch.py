from __future__ import annotations

import asyncio
import contextlib

import typer
from rich.console import Console, Group
from rich.live import Live
from rich.text import Text

from eblu.cli.common import (
    build_session,
    load_settings_or_exit,
    start_session_or_exit,
)
from eblu.cli.render import build_device_table
from eblu.config import Settings
from eblu.core import BluetoothSession


def _render(session: BluetoothSession, query: str, status: str) -> Group:
    table = build_device_table(session.visible_devices(query), title="Paired Devices")
    return Group(table, Text(status, style="dim"))


async def _watch(
    settings: Settings,
    query: str,
    interval: float,
    count: int,
    console: Console,
) -> None:
    session = build_session(settings)
    await start_session_or_exit(session, console)

    ready = f"Refreshing every {interval:g}s. Press Ctrl+C to stop."
    status = ready

    def redraw() -> None:
        live.update(_render(session, query, status))

    with Live(_render(session, query, status), console=console) as live:
        unsubscribe = session.reconciler.subscribe(redraw)
        try:
            refreshes = 0
            while count == 0 or refreshes < count:
                await asyncio.sleep(interval)
                result = await session.refresh()
                refreshes += 1
                if result.success:
                    status = ready
                else:
                    status = f"{result.message}: {result.error}"
                redraw()
        finally:
            unsubscribe()
            await session.close()


def watch(
    query: list[str] | None = typer.Argument(None, help="Search terms"),
    interval: float | None = typer.Option(
        None,
        "--interval",
        "-i",
        min=0.1,
        help="Seconds between refreshes. Uses config default if omitted.",
    ),
    count: int = typer.Option(
        0, "--count", "-n", min=0, help="Stop after N refreshes (0 runs forever)"
    ),
) -> None:
    """Keep the device list on screen and refresh it periodically."""
    settings = load_settings_or_exit()
    console = Console()
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(
            _watch(
                settings,
                " ".join(query or []),
                interval or settings.display.refresh_interval,
                count,
                console,
            )
        )


def register(app: typer.Typer) -> None:
    app.command()(watch)
