"""UI component catalog (default props and styles per component type)."""

from __future__ import annotations

import copy
import itertools
import time
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from .models import DEFAULT_PAGE_ID, MiniApp, UIComponent


UI_COMPONENT_TYPES: Mapping[str, Dict[str, Any]] = MappingProxyType(
    {
        "button": {
            "label": "Button",
            "defaultProps": {"text": "Button"},
            "defaultStyle": {
                "width": 120,
                "height": 40,
                "backgroundColor": "#7c6ff7",
                "color": "#ffffff",
                "borderRadius": 8,
                "fontSize": 14,
                "fontWeight": "500",
                "border": "none",
                "cursor": "pointer",
            },
        },
        "text": {
            "label": "Text",
            "defaultProps": {"text": "Text"},
            "defaultStyle": {"width": 200, "height": 30, "color": "#e8e6f0", "fontSize": 16, "fontWeight": "400"},
        },
        "input": {
            "label": "Input",
            "defaultProps": {"placeholder": "Type here...", "value": ""},
            "defaultStyle": {
                "width": 200,
                "height": 36,
                "backgroundColor": "#252536",
                "color": "#e8e6f0",
                "borderRadius": 8,
                "fontSize": 14,
                "border": "1px solid rgba(255,255,255,0.1)",
                "padding": "0 10px",
            },
        },
        "image": {
            "label": "Image",
            "defaultProps": {"src": "", "alt": "Image"},
            "defaultStyle": {"width": 150, "height": 150, "borderRadius": 8, "objectFit": "cover"},
        },
        "container": {
            "label": "Container",
            "defaultProps": {},
            "defaultStyle": {
                "width": 200,
                "height": 150,
                "backgroundColor": "rgba(255,255,255,0.04)",
                "borderRadius": 12,
                "border": "1px solid rgba(255,255,255,0.06)",
            },
        },
    }
)

_ui_counter = itertools.count()


def create_ui_component(
    component_type: str,
    x: float = 50,
    y: float = 50,
    *,
    page_id: Optional[str] = None,
) -> Optional[UIComponent]:
    """Create a UI component with the type's default props/style (None if unknown)."""
    definition = UI_COMPONENT_TYPES.get(component_type)
    if definition is None:
        return None
    return UIComponent(
        id=f"ui_{int(time.time() * 1000)}_{next(_ui_counter)}",
        type=component_type,
        props=copy.deepcopy(definition["defaultProps"]),
        style=copy.deepcopy(definition["defaultStyle"]),
        x=x,
        y=y,
        page_id=page_id,
    )


def components_on_page(app: MiniApp, page_id: str = DEFAULT_PAGE_ID) -> List[UIComponent]:
    """Components visible on a page; components without a pageId live on page_0."""
    return [c for c in app.ui_components if c.effective_page_id == page_id]
