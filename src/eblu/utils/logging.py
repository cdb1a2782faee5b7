from __future__ import annotations

import logging
import os
from typing import Literal, cast, get_args

import coloredlogs  # type: ignore[import]

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]

DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
DEFAULT_DATE_FORMAT = "%H:%M:%S"


def parse_log_level(value: str) -> LogLevel:
    """Return `value` as a log level name, ignoring case."""
    name = value.strip().upper()
    if name not in get_args(LogLevel):
        choices = ", ".join(get_args(LogLevel))
        raise ValueError(f"Unknown log level '{value}' (choose from {choices})")
    return cast(LogLevel, name)


def setup_logging(level: LogLevel | None = None) -> None:
    resolved = level or os.environ.get("LOGLEVEL", "WARNING").upper()

    coloredlogs.install(
        level=resolved,
        fmt=DEFAULT_FORMAT,
        datefmt=DEFAULT_DATE_FORMAT,
    )

    logging.getLogger("asyncio").setLevel(logging.WARNING)
