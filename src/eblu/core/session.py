"""Action entry points for a presentation layer."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from eblu.config import Settings
from eblu.core.lifecycle import ControlTool, DeviceState, LifecycleController
from eblu.core.reconciler import DiscoverySource, Reconciler
from eblu.core.search import filter_devices
from eblu.core.tools import build_blueutil, build_snapshot_source
from eblu.errors import DeviceNotFound, EbluError, ToolUnavailable
from eblu.models import Device, DiscoveredDevice

logger = logging.getLogger(__name__)


class BluetoothTool(DiscoverySource, ControlTool, Protocol):
    """Discovery and control through the same utility."""


@dataclass
class ActionResult:
    """Outcome of a user action, ready to be shown as a notification."""

    success: bool
    message: str
    error: EbluError | None = None


def _ok(message: str) -> ActionResult:
    return ActionResult(success=True, message=message)


def _failed(message: str, error: EbluError) -> ActionResult:
    logger.warning("%s: %s", message, error)
    return ActionResult(success=False, message=message, error=error)


class BluetoothSession:
    """Wire the reconciler and lifecycle controller to the host tools.

    `start` must succeed before any action runs. A missing control utility
    is reported once and then fails every later action without checking the
    host again.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        tool_factory: Callable[[], BluetoothTool] | None = None,
        reconciler_factory: Callable[[BluetoothTool], Reconciler] | None = None,
    ) -> None:
        self.settings = settings
        self._tool_factory = tool_factory or (lambda: build_blueutil(settings.tools))
        self._reconciler_factory = reconciler_factory or self._default_reconciler
        self._reconciler: Reconciler | None = None
        self._lifecycle: LifecycleController | None = None
        self._fatal: ToolUnavailable | None = None

    def _default_reconciler(self, tool: BluetoothTool) -> Reconciler:
        return Reconciler(
            build_snapshot_source(self.settings.tools),
            tool,
            scan_duration=self.settings.discovery.duration,
        )

    @property
    def reconciler(self) -> Reconciler:
        if self._reconciler is None:
            raise RuntimeError("Session has not been started")
        return self._reconciler

    @property
    def lifecycle(self) -> LifecycleController:
        if self._lifecycle is None:
            raise RuntimeError("Session has not been started")
        return self._lifecycle

    @property
    def started(self) -> bool:
        return self._reconciler is not None

    @property
    def known_devices(self) -> tuple[Device, ...]:
        return self.reconciler.known_devices

    @property
    def discovered_devices(self) -> tuple[DiscoveredDevice, ...]:
        return self.reconciler.discovered_devices

    def visible_devices(self, query: str = "") -> list[Device]:
        return filter_devices(
            self.known_devices, query, self.settings.display.max_devices
        )

    async def start(self) -> ActionResult:
        """Locate the control utility and load the known devices.

        Raises ToolUnavailable when the utility is missing; no snapshot
        is fetched in that case.
        """
        if self._fatal is not None:
            raise self._fatal
        if self.started:
            return await self.refresh()

        try:
            tool = self._tool_factory()
        except ToolUnavailable as exc:
            self._fatal = exc
            logger.error("%s", exc)
            raise

        self._reconciler = self._reconciler_factory(tool)
        self._lifecycle = LifecycleController(
            self._reconciler,
            tool,
            resync_delay=self.settings.lifecycle.resync_delay,
        )
        return await self.refresh()

    def _unavailable(self) -> ActionResult | None:
        if self._fatal is not None:
            return ActionResult(
                success=False, message=str(self._fatal), error=self._fatal
            )
        return None

    async def _run(
        self,
        action: Callable[[], Awaitable[str]],
        failure: str,
    ) -> ActionResult:
        blocked = self._unavailable()
        if blocked is not None:
            return blocked
        try:
            return _ok(await action())
        except EbluError as exc:
            return _failed(failure, exc)

    async def refresh(self) -> ActionResult:
        async def action() -> str:
            devices = await self.reconciler.refresh_known_devices()
            return f"Loaded {len(devices)} device(s)"

        return await self._run(action, "Failed to fetch bluetooth devices")

    async def start_discovery(self, duration: int | None = None) -> ActionResult:
        async def action() -> str:
            found = await self.reconciler.start_discovery(duration)
            return f"Found {len(found)} new devices"

        return await self._run(action, "Failed to scan for devices")

    def _require_known(self, address: str) -> Device:
        device = self.reconciler.get_known(address)
        if device is None:
            raise DeviceNotFound(f"No paired device with address {address}")
        return device

    async def toggle_connection(self, address: str) -> ActionResult:
        async def action() -> str:
            device = self._require_known(address)
            target = await self.lifecycle.toggle(device.address)
            if target is DeviceState.PAIRED_CONNECTED:
                return f"Connecting to {device.name}"
            return f"Disconnecting from {device.name}"

        return await self._run(action, "Failed to toggle connection")

    async def connect(self, address: str) -> ActionResult:
        async def action() -> str:
            device = self._require_known(address)
            await self.lifecycle.connect(device.address)
            return f"Connecting to {device.name}"

        return await self._run(action, "Failed to connect")

    async def disconnect(self, address: str) -> ActionResult:
        async def action() -> str:
            device = self._require_known(address)
            await self.lifecycle.disconnect(device.address)
            return f"Disconnecting from {device.name}"

        return await self._run(action, "Failed to disconnect")

    async def pair(self, address: str, name: str | None = None) -> ActionResult:
        discovered = None
        if self._reconciler is not None:
            discovered = self._reconciler.get_discovered(address)
        label = name or (discovered.name if discovered else address)

        async def action() -> str:
            await self.lifecycle.pair(address, label)
            return f"Paired with {label}"

        return await self._run(action, f"Failed to pair with {label}")

    async def forget(self, address: str, *, confirmed: bool) -> ActionResult:
        async def action() -> str:
            device = self._require_known(address)
            await self.lifecycle.forget(
                device.address, device.name, confirmed=confirmed
            )
            return "Device forgotten"

        return await self._run(action, "Failed to forget device")

    async def settle(self) -> None:
        """Wait for any scheduled re-sync to finish."""
        if self._lifecycle is not None:
            await self._lifecycle.wait_for_resync()

    async def close(self) -> None:
        if self._lifecycle is not None:
            self._lifecycle.cancel_resync()
