"""miniappruntime.integrations.host

Host capabilities consumed by hardware/API nodes.

`HostCapabilities` is the contract: every method raises
`CapabilityUnavailableError` unless a host overrides it. The engine treats
these failures per node family (see `engine.behaviors`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..core.errors import CapabilityUnavailableError


NOTIFICATION_GRANTED = "granted"
NOTIFICATION_DENIED = "denied"
NOTIFICATION_DEFAULT = "default"


@dataclass(frozen=True)
class Position:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class BatteryStatus:
    level: float  # 0.0 - 1.0
    charging: bool


class HostCapabilities:
    """Capabilities a hosting UI can provide. Override the ones you support."""

    async def read_clipboard(self) -> str:
        raise CapabilityUnavailableError("clipboard read is not available")

    async def write_clipboard(self, text: str) -> None:
        raise CapabilityUnavailableError("clipboard write is not available")

    async def get_position(self, timeout_s: float) -> Position:
        raise CapabilityUnavailableError("geolocation is not available")

    async def get_battery(self) -> BatteryStatus:
        raise CapabilityUnavailableError("battery status is not available")

    def notification_permission(self) -> str:
        return NOTIFICATION_DENIED

    async def request_notification_permission(self) -> str:
        return self.notification_permission()

    async def notify(self, title: str, body: str) -> None:
        raise CapabilityUnavailableError("notifications are not available")

    async def chat(self, prompt: str) -> str:
        raise CapabilityUnavailableError("chat backend is not available")


@dataclass
class HeadlessHost(HostCapabilities):
    """In-process host for CLI runs and tests.

    Clipboard is a plain string; position/battery are optional fixed values;
    notifications are recorded instead of shown.
    """

    clipboard: str = ""
    position: Optional[Position] = None
    battery: Optional[BatteryStatus] = None
    permission: str = NOTIFICATION_GRANTED
    notifications: List[Tuple[str, str]] = field(default_factory=list)

    async def read_clipboard(self) -> str:
        return self.clipboard

    async def write_clipboard(self, text: str) -> None:
        self.clipboard = text

    async def get_position(self, timeout_s: float) -> Position:
        if self.position is None:
            raise CapabilityUnavailableError("no position configured")
        return self.position

    async def get_battery(self) -> BatteryStatus:
        if self.battery is None:
            raise CapabilityUnavailableError("no battery configured")
        return self.battery

    def notification_permission(self) -> str:
        return self.permission

    async def notify(self, title: str, body: str) -> None:
        self.notifications.append((title, body))
