"""Connection and pairing lifecycle driven through the control utility."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Protocol

from eblu.core.normalizer import normalize_address
from eblu.core.reconciler import Reconciler
from eblu.core.tools import ControlVerb
from eblu.errors import ConfirmationRequired, EbluError

logger = logging.getLogger(__name__)


class ControlTool(Protocol):
    async def control(self, verb: ControlVerb, address: str) -> None: ...


class DeviceState(str, Enum):
    UNKNOWN = "unknown"
    PAIRING = "pairing"
    PAIRED_DISCONNECTED = "paired-disconnected"
    PAIRED_CONNECTED = "paired-connected"
    FORGETTING = "forgetting"
    REMOVED = "removed"


class LifecycleController:
    """Issue lifecycle commands and re-sync from the paired snapshot.

    Local state is never changed permanently. Connect and disconnect record
    an expected state that only lasts until the scheduled re-sync has read
    the snapshot again; pair and forget refresh right after the command.
    """

    def __init__(
        self,
        reconciler: Reconciler,
        control: ControlTool,
        *,
        resync_delay: float = 1.0,
    ) -> None:
        self._reconciler = reconciler
        self._control = control
        self._resync_delay = resync_delay
        self._transient: dict[str, DeviceState] = {}
        self._expected: dict[str, DeviceState] = {}
        self._in_flight: set[str] = set()
        self._resync_task: asyncio.Task[None] | None = None

    def state_of(self, address: str) -> DeviceState:
        address = normalize_address(address)
        if address in self._transient:
            return self._transient[address]

        device = self._reconciler.get_known(address)
        if device is not None:
            if address in self._expected:
                return self._expected[address]
            if device.connected:
                return DeviceState.PAIRED_CONNECTED
            return DeviceState.PAIRED_DISCONNECTED

        if self._reconciler.get_discovered(address) is not None:
            return DeviceState.UNKNOWN
        return DeviceState.REMOVED

    @property
    def resync_pending(self) -> bool:
        return self._resync_task is not None and not self._resync_task.done()

    async def connect(self, address: str) -> None:
        await self._switch(ControlVerb.CONNECT, address, DeviceState.PAIRED_CONNECTED)

    async def disconnect(self, address: str) -> None:
        await self._switch(
            ControlVerb.DISCONNECT, address, DeviceState.PAIRED_DISCONNECTED
        )

    async def toggle(self, address: str) -> DeviceState:
        """Connect a disconnected device or disconnect a connected one.

        Returns the state the device is expected to reach.
        """
        if self.state_of(address) is DeviceState.PAIRED_CONNECTED:
            await self.disconnect(address)
            return DeviceState.PAIRED_DISCONNECTED
        await self.connect(address)
        return DeviceState.PAIRED_CONNECTED

    async def _switch(
        self, verb: ControlVerb, address: str, expected: DeviceState
    ) -> None:
        address = normalize_address(address)
        self._expected[address] = expected
        self._in_flight.add(address)
        # an earlier re-sync must not read the snapshot while this command runs
        self.cancel_resync()
        try:
            await self._control.control(verb, address)
            logger.info("Sent %s to %s", verb.value, address)
        finally:
            self._in_flight.discard(address)
            # the snapshot decides the real outcome, even after a failure
            self.schedule_resync()

    async def pair(self, address: str, name: str | None = None) -> None:
        address = normalize_address(address)
        label = name or address
        self._transient[address] = DeviceState.PAIRING
        try:
            await self._control.control(ControlVerb.PAIR, address)
        finally:
            del self._transient[address]

        logger.info("Paired with %s", label)
        self._reconciler.drop_discovered(address)
        await self._resync_now()

    async def forget(
        self, address: str, name: str | None = None, *, confirmed: bool = False
    ) -> None:
        address = normalize_address(address)
        label = name or address
        if not confirmed:
            raise ConfirmationRequired(f"Forgetting '{label}' needs confirmation")

        self._transient[address] = DeviceState.FORGETTING
        try:
            await self._control.control(ControlVerb.UNPAIR, address)
        finally:
            del self._transient[address]

        logger.info("Forgot %s", label)
        self._expected.pop(address, None)
        # a forgotten device may show up again on the next scan as a new device
        self._reconciler.drop_discovered(address)
        await self._resync_now()

    def schedule_resync(self, delay: float | None = None) -> asyncio.Task[None]:
        """Re-read the snapshot after `delay`, replacing any pending re-sync."""
        self.cancel_resync()
        wait = self._resync_delay if delay is None else delay
        self._resync_task = asyncio.create_task(self._delayed_resync(wait))
        return self._resync_task

    def cancel_resync(self) -> None:
        if self._resync_task is not None and not self._resync_task.done():
            self._resync_task.cancel()
        self._resync_task = None

    async def wait_for_resync(self) -> None:
        # a re-sync scheduled while waiting replaces the one being awaited
        while self._resync_task is not None and not self._resync_task.done():
            await asyncio.wait({self._resync_task})

    async def _delayed_resync(self, delay: float) -> None:
        await asyncio.sleep(delay)
        await self._resync_now()

    async def _resync_now(self) -> bool:
        # only expectations whose command has returned are settled by this read
        settled = set(self._expected) - self._in_flight
        try:
            await self._reconciler.refresh_known_devices()
        except EbluError as exc:
            logger.warning("Could not re-read device state: %s", exc)
            ok = False
        else:
            ok = True
        for address in settled:
            self._expected.pop(address, None)
        return ok
