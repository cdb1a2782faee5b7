"""Exception hierarchy for eblu."""

from __future__ import annotations

from collections.abc import Sequence


class EbluError(Exception):
    """Base class for every error eblu reports to its caller."""


class ToolUnavailable(EbluError):
    """The Bluetooth control utility is not installed on this host."""

    def __init__(self, tool: str, hint: str | None = None) -> None:
        self.tool = tool
        message = f"{tool} not found"
        if hint:
            message = f"{message}. {hint}"
        super().__init__(message)


class SourceUnparsable(EbluError):
    """A data source produced output that does not have the expected shape."""


class MalformedRecordError(EbluError):
    """A single device record is missing required fields."""


class CommandFailed(EbluError):
    """An external command exited with a non-zero status."""

    def __init__(
        self, argv: Sequence[str], returncode: int | None, stderr: str = ""
    ) -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr.strip()
        message = f"'{' '.join(self.argv)}' exited with status {returncode}"
        if self.stderr:
            message = f"{message}: {self.stderr}"
        super().__init__(message)


class CommandTimeout(CommandFailed):
    """An external command did not finish within its time bound."""

    def __init__(self, argv: Sequence[str], timeout: float) -> None:
        self.timeout = timeout
        super().__init__(argv, None)
        self.args = (f"'{' '.join(self.argv)}' timed out after {timeout:.1f}s",)


class ConcurrentScanRejected(EbluError):
    """A discovery scan was requested while another one is still running."""

    def __init__(self) -> None:
        super().__init__("A discovery scan is already in progress")


class ConfirmationRequired(EbluError):
    """A destructive action was requested without explicit confirmation."""


class DeviceNotFound(EbluError):
    """No device matches the requested address or name."""


class AmbiguousDevice(EbluError):
    """More than one device matches the requested name."""
