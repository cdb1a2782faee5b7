from __future__ import annotations

from typing import Annotated, cast

import typer

from eblu.utils.logging import LogLevel, parse_log_level, setup_logging

from .commands import config as config_cmd
from .commands.control import register as register_control
from .commands.devices import register as register_devices
from .commands.init import register as register_init
from .commands.scan import register as register_scan
from .commands.watch import register as register_watch

app = typer.Typer(
    help="eblu - easy Bluetooth device management (requires blueutil)",
    no_args_is_help=True,
)

app.add_typer(config_cmd.app, name="config", help="Inspect configuration")

register_init(app)
register_devices(app)
register_scan(app)
register_control(app)
register_watch(app)


def _log_level(value: str | None) -> LogLevel | None:
    if value is None:
        return None
    try:
        return parse_log_level(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.callback(invoke_without_command=True)
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", help="Show version and exit"),
    ] = False,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Log level (overrides LOGLEVEL)",
            callback=_log_level,
        ),
    ] = None,
) -> None:
    """eblu CLI."""
    setup_logging(cast(LogLevel | None, log_level))

    if version:
        from importlib.metadata import version as get_version

        typer.echo(f"eblu version {get_version('eblu')}")
        raise typer.Exit()
