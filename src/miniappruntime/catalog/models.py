"""Stdlib-only models for the node type catalog.

A node type definition is the "instruction" a node instance refers to by its
`type` string. Definitions are immutable and carry no runtime state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


PIN_TYPES = frozenset({"exec", "string", "number", "boolean", "any", "list"})
PROPERTY_TYPES = frozenset({"string", "number", "boolean", "select"})


@dataclass(frozen=True)
class PinDef:
    id: str
    label: str = ""
    type: str = "any"

    @property
    def is_exec(self) -> bool:
        return self.type == "exec"


@dataclass(frozen=True)
class PropertySchema:
    type: str
    label: str
    default: Any = None
    options: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class NodeCategory:
    """Editor-facing category info. The engine only uses `id` for logging."""

    id: str
    label: str
    color: str
    icon: str


@dataclass(frozen=True)
class NodeTypeDefinition:
    type: str
    category: str
    label: str
    description: str = ""
    inputs: Tuple[PinDef, ...] = ()
    outputs: Tuple[PinDef, ...] = ()
    properties: Mapping[str, PropertySchema] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def id(self) -> str:
        return self.type

    def input_pin(self, pin_id: str) -> Optional[PinDef]:
        for p in self.inputs:
            if p.id == pin_id:
                return p
        return None

    def output_pin(self, pin_id: str) -> Optional[PinDef]:
        for p in self.outputs:
            if p.id == pin_id:
                return p
        return None

    def exec_outputs(self) -> Tuple[PinDef, ...]:
        return tuple(p for p in self.outputs if p.is_exec)

    def data_outputs(self) -> Tuple[PinDef, ...]:
        return tuple(p for p in self.outputs if not p.is_exec)

    def has_exec_input(self) -> bool:
        return any(p.is_exec for p in self.inputs)

    def default_properties(self) -> Dict[str, Any]:
        return {key: schema.default for key, schema in self.properties.items()}
