"""Shared fixtures for engine tests.

- `make_app`: build a mini-app dict from compact node/wire tuples
- `recorder`: RuntimeCallbacks that record every UI intent
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

import pytest

from miniappruntime.engine import RuntimeCallbacks


def _pin(ref: str) -> Dict[str, str]:
    node_id, pin_id = ref.split(".", 1)
    return {"nodeId": node_id, "pinId": pin_id}


def build_app(nodes: Sequence[Tuple], wires: Sequence[Tuple[str, str]] = ()) -> Dict[str, Any]:
    """nodes: (id, type) or (id, type, properties); wires: ("src.pin", "dst.pin")."""
    out_nodes = []
    for entry in nodes:
        node_id, node_type = entry[0], entry[1]
        properties = dict(entry[2]) if len(entry) > 2 else {}
        out_nodes.append({"id": node_id, "type": node_type, "x": 0, "y": 0, "properties": properties})
    return {
        "id": "app_test",
        "name": "Test app",
        "uiComponents": [],
        "nodes": out_nodes,
        "connections": [{"from": _pin(src), "to": _pin(dst)} for src, dst in wires],
    }


@dataclass
class Recorder:
    texts: List[Tuple[str, str]] = field(default_factory=list)
    styles: List[Tuple[str, str, str]] = field(default_factory=list)
    alerts: List[str] = field(default_factory=list)
    logs: List[str] = field(default_factory=list)
    pages: List[str] = field(default_factory=list)
    inputs: Dict[str, str] = field(default_factory=dict)

    def callbacks(self) -> RuntimeCallbacks:
        return RuntimeCallbacks(
            on_set_text=lambda target, text: self.texts.append((target, text)),
            on_set_style=lambda target, prop, value: self.styles.append((target, prop, value)),
            on_alert=self.alerts.append,
            on_log=self.logs.append,
            on_get_input_value=lambda target: self.inputs.get(target, ""),
            on_navigate_page=self.pages.append,
        )

    def text_values(self) -> List[str]:
        return [text for _, text in self.texts]

    def user_logs(self) -> List[str]:
        return [m for m in self.logs if m not in ("Runtime started", "Runtime stopped")]


@pytest.fixture
def make_app():
    return build_app


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
