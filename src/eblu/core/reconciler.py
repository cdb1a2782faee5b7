"""Ownership of the known-device and discovered-device sets."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Protocol

from eblu.core.normalizer import (
    normalize_address,
    normalize_inquiry,
    normalize_snapshot,
)
from eblu.errors import ConcurrentScanRejected
from eblu.models import Device, DiscoveredDevice

logger = logging.getLogger(__name__)

Listener = Callable[[], None]
Clock = Callable[[], datetime]


class SnapshotSource(Protocol):
    async def fetch(self) -> str: ...


class DiscoverySource(Protocol):
    async def inquiry(self, duration: int) -> str: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def sort_devices(devices: Iterable[Device]) -> list[Device]:
    """Connected devices first, then by case-insensitive name."""
    return sorted(
        devices,
        key=lambda d: (not d.connected, d.name.casefold(), d.address),
    )


def dedupe_devices(devices: Iterable[Device]) -> list[Device]:
    """Keep the first device seen for every address."""
    unique: dict[str, Device] = {}
    for device in devices:
        if device.address in unique:
            logger.debug("Ignoring duplicate entry for %s", device.address)
            continue
        unique[device.address] = device
    return list(unique.values())


class Reconciler:
    """Merge source data into the canonical device lists.

    The known set is replaced as a whole on every successful refresh, never
    patched. Only the latest requested refresh may publish its result.
    """

    def __init__(
        self,
        snapshot_source: SnapshotSource,
        discovery_source: DiscoverySource,
        *,
        scan_duration: int = 10,
        clock: Clock = _utcnow,
    ) -> None:
        self._snapshot_source = snapshot_source
        self._discovery_source = discovery_source
        self._scan_duration = scan_duration
        self._clock = clock

        self._known: tuple[Device, ...] = ()
        self._discovered: tuple[DiscoveredDevice, ...] = ()
        self._scanning = False
        self._refresh_requested = 0
        self._listeners: list[Listener] = []

    @property
    def known_devices(self) -> tuple[Device, ...]:
        return self._known

    @property
    def discovered_devices(self) -> tuple[DiscoveredDevice, ...]:
        return self._discovered

    @property
    def scanning(self) -> bool:
        return self._scanning

    def get_known(self, address: str) -> Device | None:
        address = normalize_address(address)
        for device in self._known:
            if device.address == address:
                return device
        return None

    def get_discovered(self, address: str) -> DiscoveredDevice | None:
        address = normalize_address(address)
        for device in self._discovered:
            if device.address == address:
                return device
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` after every change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    async def refresh_known_devices(self) -> tuple[Device, ...]:
        """Re-read the paired snapshot and replace the known set.

        On failure the previous set is kept and the error propagates.
        """
        self._refresh_requested += 1
        request = self._refresh_requested

        output = await self._snapshot_source.fetch()
        normalized = normalize_snapshot(output, self._clock())
        devices = sort_devices(dedupe_devices(normalized))

        if request != self._refresh_requested:
            logger.debug(
                "Discarding refresh #%d, #%d was requested since",
                request,
                self._refresh_requested,
            )
            return self._known

        self._known = tuple(devices)
        logger.debug("Known devices refreshed: %d device(s)", len(devices))
        self._notify()
        return self._known

    async def start_discovery(
        self, duration: int | None = None
    ) -> tuple[DiscoveredDevice, ...]:
        """Run one inquiry scan and replace the discovered set."""
        if self._scanning:
            raise ConcurrentScanRejected()

        self._scanning = True
        self._notify()
        known_addresses = {device.address for device in self._known}
        try:
            output = await self._discovery_source.inquiry(
                duration or self._scan_duration
            )
            discovered: dict[str, DiscoveredDevice] = {}
            for device in normalize_inquiry(output):
                if device.address in known_addresses or device.address in discovered:
                    continue
                discovered[device.address] = device
            self._discovered = tuple(discovered.values())
        finally:
            self._scanning = False
            self._notify()

        logger.info("Discovery found %d new device(s)", len(self._discovered))
        return self._discovered

    def drop_discovered(self, address: str) -> bool:
        address = normalize_address(address)
        remaining = tuple(d for d in self._discovered if d.address != address)
        if len(remaining) == len(self._discovered):
            return False
        self._discovered = remaining
        self._notify()
        return True
