"""
miniappruntime

Visual mini-app runtime (document → node graph → async execution).

This package provides:
- a static catalog of node types (pins, properties, categories)
- the serializable mini-app document (pages, UI components, nodes, wires)
- an asyncio interpreter that pushes along exec wires and pulls data wires

Editors and renderers are expected to live in the host application; they talk
to the engine through `RuntimeCallbacks` and `HostCapabilities`.
"""

from .catalog import NODE_CATEGORIES, NODE_TYPES, create_node_instance, get_category_info, get_node_def
from .core import (
    CapabilityUnavailableError,
    InvalidAppFormatError,
    MiniAppError,
    ProxyError,
    RuntimeConfig,
    configure_logging,
    get_logger,
)
from .document import (
    MiniApp,
    NodeInstance,
    UIComponent,
    create_empty_app,
    create_ui_component,
    deserialize_app,
    load_app_json,
    serialize_app,
    validate_app,
)
from .engine import LogEntry, MiniAppRuntime, RuntimeCallbacks
from .integrations import HeadlessHost, HostCapabilities, HttpProxy, HttpxProxy, RemoteHttpProxy
from .storage import (
    AppStore,
    InMemoryAppStore,
    InMemoryKeyValueStore,
    JsonDirectoryAppStore,
    JsonFileKeyValueStore,
    KeyValueStore,
)

__version__ = "0.1.0"

__all__ = [
    # Catalog
    "NODE_TYPES",
    "NODE_CATEGORIES",
    "get_node_def",
    "get_category_info",
    "create_node_instance",
    # Document
    "MiniApp",
    "NodeInstance",
    "UIComponent",
    "create_empty_app",
    "create_ui_component",
    "validate_app",
    "load_app_json",
    "serialize_app",
    "deserialize_app",
    # Engine
    "MiniAppRuntime",
    "RuntimeCallbacks",
    "LogEntry",
    # Integrations
    "HostCapabilities",
    "HeadlessHost",
    "HttpProxy",
    "HttpxProxy",
    "RemoteHttpProxy",
    # Storage
    "KeyValueStore",
    "AppStore",
    "InMemoryKeyValueStore",
    "InMemoryAppStore",
    "JsonFileKeyValueStore",
    "JsonDirectoryAppStore",
    # Core
    "RuntimeConfig",
    "MiniAppError",
    "InvalidAppFormatError",
    "CapabilityUnavailableError",
    "ProxyError",
    "get_logger",
    "configure_logging",
]
