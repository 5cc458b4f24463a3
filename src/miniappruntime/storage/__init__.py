from .base import AppStore, AppSummary, KeyValueStore
from .in_memory import InMemoryAppStore, InMemoryKeyValueStore
from .json_files import JsonDirectoryAppStore, JsonFileKeyValueStore, sanitize_app_id

__all__ = [
    "KeyValueStore",
    "AppStore",
    "AppSummary",
    "InMemoryKeyValueStore",
    "InMemoryAppStore",
    "JsonFileKeyValueStore",
    "JsonDirectoryAppStore",
    "sanitize_app_id",
]
