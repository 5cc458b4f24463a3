from .config import DEFAULT_NOTIFICATION_TITLE, DEFAULT_STORAGE_PREFIX, RuntimeConfig
from .errors import CapabilityUnavailableError, InvalidAppFormatError, MiniAppError, ProxyError
from .logging import configure_logging, get_logger

__all__ = [
    "RuntimeConfig",
    "DEFAULT_STORAGE_PREFIX",
    "DEFAULT_NOTIFICATION_TITLE",
    "MiniAppError",
    "InvalidAppFormatError",
    "CapabilityUnavailableError",
    "ProxyError",
    "get_logger",
    "configure_logging",
]
