from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from eblu.cli.common import resolve_config_path_or_exit
from eblu.config import Settings, write_settings


def register(app: typer.Typer) -> None:
    @app.command()
    def init(
        force: Annotated[
            bool,
            typer.Option("--force", "-f", help="Overwrite an existing config"),
        ] = False,
    ) -> None:
        """Write a default eblu configuration file."""
        console = Console()

        config_path, config_exists = resolve_config_path_or_exit(allow_missing=True)
        if config_exists and not force:
            console.print(f"[dim]Config exists:[/dim] {config_path}")
            return

        write_settings(Settings(), config_path)
        action = "Overwrote" if config_exists else "Created"
        console.print(f"[green]✓[/green] {action} config: {config_path}")
