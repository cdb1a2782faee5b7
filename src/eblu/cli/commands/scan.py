from __future__ import annotations

import asyncio
import logging

import typer
from rich.console import Console

from eblu.cli.common import (
    build_session,
    load_settings_or_exit,
    report,
    start_session_or_exit,
)
from eblu.cli.render import build_discovered_table
from eblu.config import Settings
from eblu.utils.redaction import Redactor

logger = logging.getLogger(__name__)


async def _scan(
    settings: Settings, duration: int, redact: bool, console: Console
) -> None:
    session = build_session(settings)
    await start_session_or_exit(session, console)

    logger.info("Inquiry scan settings: duration=%ds", duration)
    with console.status(f"Scanning for devices ({duration}s)..."):
        result = await session.start_discovery(duration)

    report(console, result)
    if not result.success:
        raise typer.Exit(1)

    if session.discovered_devices:
        redactor = Redactor(enabled=redact)
        console.print(build_discovered_table(session.discovered_devices, redactor))
        console.print("Pair with: eblu pair <address>")


def scan(
    duration: int | None = typer.Option(
        None,
        "--duration",
        "-d",
        min=1,
        max=60,
        help="Scan length in seconds. Uses config default if omitted.",
    ),
    redact: bool = typer.Option(
        False,
        "--redact",
        help="Redact addresses in output",
    ),
) -> None:
    """Scan for nearby devices that are not paired yet."""
    settings = load_settings_or_exit()
    console = Console()
    asyncio.run(
        _scan(settings, duration or settings.discovery.duration, redact, console)
    )


def register(app: typer.Typer) -> None:
    app.command()(scan)
