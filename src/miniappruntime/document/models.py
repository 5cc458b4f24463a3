"""Stdlib-only models for the mini-app JSON document.

These are intentionally permissive:
- Unknown/extra keys are kept in `extra` and written back on serialization.
- `type` is stored as a string; the catalog/engine interpret it.

The persisted shape uses camelCase keys (`uiComponents`, `displayMode`,
`pageId`, ...). Python attributes use snake_case; `to_dict()`/`from_dict()`
translate between the two.
"""

from __future__ import annotations

import copy
import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..core.errors import InvalidAppFormatError


DISPLAY_MODES = ("fullscreen", "floating")
DEFAULT_DISPLAY_MODE = "fullscreen"
DEFAULT_PAGE_ID = "page_0"
DEFAULT_LAYER_ID = "default"


def now_iso() -> str:
    """UTC timestamp in the `2024-01-01T00:00:00.000Z` form."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _extra(raw: Dict[str, Any], known: tuple) -> Dict[str, Any]:
    return {k: copy.deepcopy(v) for k, v in raw.items() if k not in known}


def _as_dict(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, dict) else {}


def _as_number(value: Any, default: float = 0) -> Any:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return value
    return default


@dataclass
class Page:
    id: str
    name: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    _KEYS = ("id", "name")

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Page":
        return cls(id=str(raw.get("id") or ""), name=str(raw.get("name") or ""), extra=_extra(raw, cls._KEYS))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, **copy.deepcopy(self.extra)}


@dataclass
class Layer:
    id: str
    name: str = ""
    visible: bool = True
    extra: Dict[str, Any] = field(default_factory=dict)

    _KEYS = ("id", "name", "visible")

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Layer":
        return cls(
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or ""),
            visible=raw.get("visible") is not False,
            extra=_extra(raw, cls._KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "visible": self.visible, **copy.deepcopy(self.extra)}


@dataclass
class Canvas:
    width: Any = 400
    height: Any = 300
    background_color: str = "#2d2d3f"

    @classmethod
    def from_dict(cls, raw: Any) -> "Canvas":
        raw = _as_dict(raw)
        return cls(
            width=_as_number(raw.get("width"), 400),
            height=_as_number(raw.get("height"), 300),
            background_color=str(raw.get("backgroundColor") or "#2d2d3f"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"width": self.width, "height": self.height, "backgroundColor": self.background_color}


@dataclass
class UIComponent:
    id: str
    type: str
    props: Dict[str, Any] = field(default_factory=dict)
    style: Dict[str, Any] = field(default_factory=dict)
    x: Any = 0
    y: Any = 0
    page_id: Optional[str] = None
    layer: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _KEYS = ("id", "type", "props", "style", "x", "y", "pageId", "layer")

    @property
    def effective_page_id(self) -> str:
        return self.page_id or DEFAULT_PAGE_ID

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "UIComponent":
        page_id = raw.get("pageId")
        layer = raw.get("layer")
        return cls(
            id=str(raw.get("id") or ""),
            type=str(raw.get("type") or ""),
            props=copy.deepcopy(_as_dict(raw.get("props"))),
            style=copy.deepcopy(_as_dict(raw.get("style"))),
            x=_as_number(raw.get("x")),
            y=_as_number(raw.get("y")),
            page_id=str(page_id) if page_id is not None else None,
            layer=str(layer) if layer is not None else None,
            extra=_extra(raw, cls._KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "props": copy.deepcopy(self.props),
            "style": copy.deepcopy(self.style),
            "x": self.x,
            "y": self.y,
        }
        if self.page_id is not None:
            out["pageId"] = self.page_id
        if self.layer is not None:
            out["layer"] = self.layer
        out.update(copy.deepcopy(self.extra))
        return out


@dataclass
class NodeInstance:
    id: str
    type: str
    x: Any = 0
    y: Any = 0
    properties: Dict[str, Any] = field(default_factory=dict)
    layer: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _KEYS = ("id", "type", "x", "y", "properties", "layer")

    def prop(self, key: str, default: Any = None) -> Any:
        """Property value, falling back to `default` when missing or falsy-empty."""
        value = self.properties.get(key)
        if value is None or value == "":
            return default
        return value

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "NodeInstance":
        layer = raw.get("layer")
        return cls(
            id=str(raw.get("id") or ""),
            type=str(raw.get("type") or ""),
            x=_as_number(raw.get("x")),
            y=_as_number(raw.get("y")),
            properties=copy.deepcopy(_as_dict(raw.get("properties"))),
            layer=str(layer) if layer is not None else None,
            extra=_extra(raw, cls._KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "x": self.x,
            "y": self.y,
            "properties": copy.deepcopy(self.properties),
        }
        if self.layer is not None:
            out["layer"] = self.layer
        out.update(copy.deepcopy(self.extra))
        return out


@dataclass(frozen=True)
class PinRef:
    node_id: str
    pin_id: str

    @classmethod
    def from_dict(cls, raw: Any) -> Optional["PinRef"]:
        if not isinstance(raw, dict):
            return None
        node_id = raw.get("nodeId")
        pin_id = raw.get("pinId")
        if not isinstance(node_id, str) or not isinstance(pin_id, str):
            return None
        return cls(node_id=node_id, pin_id=pin_id)

    def to_dict(self) -> Dict[str, Any]:
        return {"nodeId": self.node_id, "pinId": self.pin_id}


@dataclass(frozen=True)
class Connection:
    """A wire from an output pin (`source`) to an input pin (`target`).

    Serialized as `{"from": {...}, "to": {...}}`.
    """

    source: PinRef
    target: PinRef
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    _KEYS = ("from", "to")

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> Optional["Connection"]:
        source = PinRef.from_dict(raw.get("from"))
        target = PinRef.from_dict(raw.get("to"))
        if source is None or target is None:
            return None
        return cls(source=source, target=target, extra=_extra(raw, cls._KEYS))

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.source.to_dict(), "to": self.target.to_dict(), **copy.deepcopy(self.extra)}


@dataclass
class MiniApp:
    id: str
    name: str
    version: str = "1.0"
    display_mode: str = DEFAULT_DISPLAY_MODE
    canvas: Canvas = field(default_factory=Canvas)
    pages: List[Page] = field(default_factory=list)
    layers: List[Layer] = field(default_factory=list)
    ui_components: List[UIComponent] = field(default_factory=list)
    nodes: List[NodeInstance] = field(default_factory=list)
    connections: List[Connection] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    floating_size: Optional[Dict[str, Any]] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _KEYS = (
        "id",
        "name",
        "version",
        "displayMode",
        "canvas",
        "pages",
        "layers",
        "uiComponents",
        "nodes",
        "connections",
        "createdAt",
        "updatedAt",
        "floatingSize",
    )

    def get_node(self, node_id: str) -> Optional[NodeInstance]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def get_page(self, page_id: str) -> Optional[Page]:
        for p in self.pages:
            if p.id == page_id:
                return p
        return None

    def touch(self) -> None:
        self.updated_at = now_iso()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "MiniApp":
        """Build a MiniApp from an already validated dict (see `validate_app`)."""
        pages = [Page.from_dict(p) for p in raw.get("pages") or [] if isinstance(p, dict)]
        layers = [Layer.from_dict(layer) for layer in raw.get("layers") or [] if isinstance(layer, dict)]
        ui_components = [UIComponent.from_dict(c) for c in raw.get("uiComponents") or [] if isinstance(c, dict)]
        nodes = [NodeInstance.from_dict(n) for n in raw.get("nodes") or [] if isinstance(n, dict)]
        connections: List[Connection] = []
        for c in raw.get("connections") or []:
            if not isinstance(c, dict):
                continue
            conn = Connection.from_dict(c)
            if conn is not None:
                connections.append(conn)

        floating = raw.get("floatingSize")
        return cls(
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or ""),
            version=str(raw.get("version") or "1.0"),
            display_mode=str(raw.get("displayMode") or DEFAULT_DISPLAY_MODE),
            canvas=Canvas.from_dict(raw.get("canvas")),
            pages=pages,
            layers=layers,
            ui_components=ui_components,
            nodes=nodes,
            connections=connections,
            created_at=raw.get("createdAt"),
            updated_at=raw.get("updatedAt"),
            floating_size=copy.deepcopy(floating) if isinstance(floating, dict) else None,
            extra=_extra(raw, cls._KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "displayMode": self.display_mode,
        }
        if self.floating_size is not None:
            out["floatingSize"] = copy.deepcopy(self.floating_size)
        if self.created_at is not None:
            out["createdAt"] = self.created_at
        if self.updated_at is not None:
            out["updatedAt"] = self.updated_at
        out.update(
            {
                "canvas": self.canvas.to_dict(),
                "pages": [p.to_dict() for p in self.pages],
                "uiComponents": [c.to_dict() for c in self.ui_components],
                "nodes": [n.to_dict() for n in self.nodes],
                "connections": [c.to_dict() for c in self.connections],
                "layers": [layer.to_dict() for layer in self.layers],
            }
        )
        out.update(copy.deepcopy(self.extra))
        return out


def create_empty_app(name: str = "New Mini App") -> MiniApp:
    """A blank app: one page, one layer, no components/nodes/connections."""
    ts = now_iso()
    return MiniApp(
        id=f"app_{int(time.time() * 1000)}",
        name=name,
        version="1.0",
        display_mode=DEFAULT_DISPLAY_MODE,
        floating_size={"width": 400, "height": 300},
        created_at=ts,
        updated_at=ts,
        canvas=Canvas(width=400, height=300, background_color="#2d2d3f"),
        pages=[Page(id=DEFAULT_PAGE_ID, name="Main page")],
        layers=[Layer(id=DEFAULT_LAYER_ID, name="Default layer", visible=True)],
    )


def validate_app(raw: Any) -> Dict[str, Any]:
    """Check the required shape of a raw app dict.

    Returns a shallow copy with back-compat defaults filled in (`displayMode`).
    Raises InvalidAppFormatError when a required field is missing.
    """
    if not isinstance(raw, dict):
        raise InvalidAppFormatError("Mini app must be a JSON object (dict)")
    name = raw.get("name")
    if not isinstance(name, str) or not name:
        raise InvalidAppFormatError("Invalid app format: missing 'name'")
    for key in ("uiComponents", "nodes", "connections"):
        if not isinstance(raw.get(key), list):
            raise InvalidAppFormatError(f"Invalid app format: '{key}' must be a list")

    out = dict(raw)
    if not out.get("displayMode"):
        out["displayMode"] = DEFAULT_DISPLAY_MODE
    return out


def load_app_json(raw: Any) -> MiniApp:
    """Parse a mini-app from JSON text or a dict (validated)."""
    if isinstance(raw, MiniApp):
        return raw
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise InvalidAppFormatError(f"Invalid app JSON: {e}") from e
    return MiniApp.from_dict(validate_app(raw))


def serialize_app(app: MiniApp) -> str:
    return json.dumps(app.to_dict(), ensure_ascii=False, indent=2)


def deserialize_app(text: str) -> MiniApp:
    return load_app_json(text)
