"""miniappruntime.document

The serializable mini-app program: pages, UI components, nodes, wires.
"""

from .models import (
    DEFAULT_DISPLAY_MODE,
    DEFAULT_LAYER_ID,
    DEFAULT_PAGE_ID,
    DISPLAY_MODES,
    Canvas,
    Connection,
    Layer,
    MiniApp,
    NodeInstance,
    Page,
    PinRef,
    UIComponent,
    create_empty_app,
    deserialize_app,
    load_app_json,
    now_iso,
    serialize_app,
    validate_app,
)
from .ui_components import UI_COMPONENT_TYPES, components_on_page, create_ui_component

__all__ = [
    "DEFAULT_DISPLAY_MODE",
    "DEFAULT_LAYER_ID",
    "DEFAULT_PAGE_ID",
    "DISPLAY_MODES",
    "Canvas",
    "Connection",
    "Layer",
    "MiniApp",
    "NodeInstance",
    "Page",
    "PinRef",
    "UIComponent",
    "create_empty_app",
    "deserialize_app",
    "load_app_json",
    "now_iso",
    "serialize_app",
    "validate_app",
    "UI_COMPONENT_TYPES",
    "components_on_page",
    "create_ui_component",
]
