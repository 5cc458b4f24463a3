"""miniappruntime.core.errors

Exception hierarchy shared across the package.
"""

from __future__ import annotations


class MiniAppError(Exception):
    """Base class for mini-app runtime errors."""


class InvalidAppFormatError(MiniAppError, ValueError):
    """Raised when a mini-app document is missing required fields."""


class CapabilityUnavailableError(MiniAppError):
    """Raised by a host when a capability (clipboard, GPS, ...) cannot be used."""


class ProxyError(MiniAppError):
    """Raised when an outbound HTTP request through the proxy fails."""

    def __init__(self, message: str, *, status: int = 0):
        super().__init__(message)
        self.status = status
