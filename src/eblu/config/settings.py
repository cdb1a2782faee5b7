from __future__ import annotations

import json
import os
import tomllib
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from .paths import default_config_path, expand_path

CONFIG_ENV_VAR = "EBLU_CONFIG"

DEFAULT_SEARCH_PATH = "/opt/homebrew/bin:/usr/local/bin:/usr/bin:/bin"
DEFAULT_SNAPSHOT_COMMAND = ("/usr/sbin/system_profiler", "SPBluetoothDataType", "-json")


class DisplayConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    max_devices: int = Field(default=5, ge=1, le=20)
    refresh_interval: float = Field(default=5.0, gt=0)


class DiscoveryConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    duration: int = Field(default=10, ge=1, le=60)


class LifecycleConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    resync_delay: float = Field(default=1.0, ge=0)


class ToolsConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    control_command: str = "blueutil"
    search_path: str = DEFAULT_SEARCH_PATH
    snapshot_command: tuple[str, ...] = Field(
        default=DEFAULT_SNAPSHOT_COMMAND, min_length=1
    )
    command_timeout: float = Field(default=15.0, gt=0)


class Settings(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    display: DisplayConfig = Field(default_factory=DisplayConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    lifecycle: LifecycleConfig = Field(default_factory=LifecycleConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)


def resolve_config_path(allow_missing: bool = False) -> tuple[Path, bool]:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = expand_path(env_path)
        if not allow_missing and not path.exists():
            raise FileNotFoundError(f"{CONFIG_ENV_VAR} points to missing file: {path}")
        return path, path.exists()

    path = default_config_path()
    return path, path.exists()


def load_settings(path: Path) -> Settings:
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in config file: {path}\n{exc}") from exc

    try:
        return Settings.model_validate(data or {})
    except ValidationError as exc:
        raise ValueError(f"Invalid config file: {path}\n{exc}") from exc


@lru_cache
def get_settings() -> Settings:
    path, exists = resolve_config_path(allow_missing=False)
    if exists:
        return load_settings(path)
    return Settings()


def _toml_string(value: str) -> str:
    return json.dumps(value)


def _toml_array(values: tuple[str, ...]) -> str:
    return "[" + ", ".join(_toml_string(value) for value in values) + "]"


def render_settings_toml(settings: Settings) -> str:
    lines = [
        "# eblu configuration",
        "",
        "[display]",
        "# Devices shown when the search query is empty (1-20)",
        f"max_devices = {settings.display.max_devices}",
        f"refresh_interval = {settings.display.refresh_interval}",
        "",
        "[discovery]",
        "# Inquiry scan length in seconds",
        f"duration = {settings.discovery.duration}",
        "",
        "[lifecycle]",
        "# Delay before re-reading device state after connect/disconnect",
        f"resync_delay = {settings.lifecycle.resync_delay}",
        "",
        "[tools]",
        f"control_command = {_toml_string(settings.tools.control_command)}",
        f"search_path = {_toml_string(settings.tools.search_path)}",
        f"snapshot_command = {_toml_array(settings.tools.snapshot_command)}",
        f"command_timeout = {settings.tools.command_timeout}",
        "",
    ]
    return "\n".join(lines)


def write_settings(settings: Settings, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_settings_toml(settings))
