from __future__ import annotations

from .paths import (
    APP_NAME,
    CONFIG_FILENAME,
    default_config_dir,
    default_config_path,
    expand_path,
)
from .settings import (
    CONFIG_ENV_VAR,
    DisplayConfig,
    DiscoveryConfig,
    LifecycleConfig,
    Settings,
    ToolsConfig,
    get_settings,
    load_settings,
    render_settings_toml,
    resolve_config_path,
    write_settings,
)

__all__ = [
    "APP_NAME",
    "CONFIG_ENV_VAR",
    "CONFIG_FILENAME",
    "DiscoveryConfig",
    "DisplayConfig",
    "LifecycleConfig",
    "Settings",
    "ToolsConfig",
    "default_config_dir",
    "default_config_path",
    "expand_path",
    "get_settings",
    "load_settings",
    "render_settings_toml",
    "resolve_config_path",
    "write_settings",
]
