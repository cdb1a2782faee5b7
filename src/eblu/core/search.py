"""Subsequence search over device names and types."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, TypeVar

from eblu.core.normalizer import normalize_address
from eblu.errors import AmbiguousDevice, DeviceNotFound


class Searchable(Protocol):
    @property
    def address(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def device_type(self) -> str | None: ...


T = TypeVar("T", bound=Searchable)


def split_terms(query: str) -> list[str]:
    # str.split() without a separator drops empty terms
    return query.lower().split()


def is_subsequence(pattern: str, text: str) -> bool:
    """True when the characters of `pattern` appear in `text` in order."""
    remaining = iter(text)
    return all(char in remaining for char in pattern)


def matches(device: Searchable, query: str) -> bool:
    """Every query term must be a subsequence of the name or the type."""
    name = device.name.lower()
    device_type = (device.device_type or "").lower()
    return all(
        is_subsequence(term, name) or is_subsequence(term, device_type)
        for term in split_terms(query)
    )


def filter_devices(devices: Sequence[T], query: str, max_devices: int) -> list[T]:
    """Devices to display for `query`.

    A blank query shows the first `max_devices` devices; otherwise every
    matching device is returned.
    """
    if not split_terms(query):
        return list(devices[:max_devices])
    return [device for device in devices if matches(device, query)]


def resolve_device(devices: Sequence[T], target: str) -> T:
    """Find a device by exact address, falling back to a unique search match."""
    address = normalize_address(target)
    for device in devices:
        if device.address == address:
            return device

    found = [device for device in devices if matches(device, target)]
    if not split_terms(target) or not found:
        raise DeviceNotFound(f"No device matches '{target}'")
    if len(found) > 1:
        names = ", ".join(device.name for device in found)
        raise AmbiguousDevice(f"'{target}' matches several devices: {names}")
    return found[0]
