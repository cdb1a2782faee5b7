from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Redactor:
    """Mask hardware addresses and firmware versions for shareable output."""

    enabled: bool = True
    _address_map: dict[str, int] = field(default_factory=dict)
    _address_counter: int = 0

    def redact_address(self, address: str) -> str:
        if not self.enabled:
            return address
        parts = address.split(":")
        if len(parts) != 6:
            return address
        prefix = ":".join(parts[:3])
        counter = self._address_map.get(address)
        if counter is None:
            self._address_counter += 1
            counter = self._address_counter
            self._address_map[address] = counter
        return f"{prefix}:xx:xx:{counter:02d}"

    def redact_version(self, version: str | None) -> str:
        if version is None:
            return ""
        if not self.enabled or "." not in version:
            return version
        major = version.split(".", 1)[0]
        return f"{major}.x"
