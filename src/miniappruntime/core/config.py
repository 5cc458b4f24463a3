"""miniappruntime.core.config

Runtime configuration for the mini-app execution engine.

This module provides a RuntimeConfig dataclass that centralizes the defaults
the engine falls back to when a node omits a property (timer interval, loop
cap, storage namespace, host call timeouts).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict


DEFAULT_STORAGE_PREFIX = "ebos-miniapp-"
DEFAULT_NOTIFICATION_TITLE = "EssentialBoardOS"


@dataclass(frozen=True)
class RuntimeConfig:
    """Configuration for a MiniAppRuntime.

    Attributes:
        storage_prefix: Namespace prepended to every save/load/delete key
        default_timer_interval_ms: Interval used when an onTimer node has none
        default_max_iterations: While-loop cap when a node has none
        geolocation_timeout_s: Timeout passed to the host position query
        http_timeout_s: Timeout for outbound requests issued by the proxy
        default_notification_title: Title used when sendNotification has none
        default_function_name: Function name used when a function node has none
        default_page_id: Page used by navigatePage and for components without pageId
        max_call_depth: Nested function calls allowed in one chain

    Example:
        >>> config = RuntimeConfig(default_max_iterations=50)
        >>> config.to_dict()["default_max_iterations"]
        50
    """

    storage_prefix: str = DEFAULT_STORAGE_PREFIX
    default_timer_interval_ms: int = 1000
    default_max_iterations: int = 1000
    geolocation_timeout_s: float = 10.0
    http_timeout_s: float = 10.0
    default_notification_title: str = DEFAULT_NOTIFICATION_TITLE
    default_function_name: str = "myFunction"
    default_page_id: str = "page_0"
    max_call_depth: int = 64

    def storage_key(self, key: Any) -> str:
        return f"{self.storage_prefix}{key or 'myKey'}"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
