from __future__ import annotations

from .lifecycle import DeviceState, LifecycleController
from .normalizer import (
    normalize_address,
    normalize_discovered_record,
    normalize_inquiry,
    normalize_paired_record,
    normalize_snapshot,
    parse_inquiry,
    parse_snapshot,
)
from .reconciler import Reconciler, dedupe_devices, sort_devices
from .search import (
    filter_devices,
    is_subsequence,
    matches,
    resolve_device,
    split_terms,
)
from .session import ActionResult, BluetoothSession
from .tools import (
    Blueutil,
    ControlVerb,
    SystemProfilerSource,
    locate_tool,
    run_command,
)

__all__ = [
    "ActionResult",
    "BluetoothSession",
    "Blueutil",
    "ControlVerb",
    "DeviceState",
    "LifecycleController",
    "Reconciler",
    "SystemProfilerSource",
    "dedupe_devices",
    "filter_devices",
    "is_subsequence",
    "locate_tool",
    "matches",
    "normalize_address",
    "normalize_discovered_record",
    "normalize_inquiry",
    "normalize_paired_record",
    "normalize_snapshot",
    "parse_inquiry",
    "parse_snapshot",
    "resolve_device",
    "run_command",
    "sort_devices",
    "split_terms",
]
