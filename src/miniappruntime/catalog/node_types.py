"""Node type catalog (the "instruction set" of a mini-app).

Lookup is by the node instance's `type` string. Unknown types resolve to
`None`; callers decide what absence means (the engine treats it as a no-op).
"""

from __future__ import annotations

import itertools
import time
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from ..document.models import NodeInstance
from .models import NodeCategory, NodeTypeDefinition, PinDef, PropertySchema


NODE_CATEGORIES: Mapping[str, NodeCategory] = MappingProxyType(
    {
        "event": NodeCategory(id="event", label="Event", color="#ff6b6b", icon="⚡"),
        "action": NodeCategory(id="action", label="Action", color="#00ce9a", icon="▶"),
        "data": NodeCategory(id="data", label="Data", color="#fdcb6e", icon="📦"),
        "logic": NodeCategory(id="logic", label="Logic", color="#74b9ff", icon="🔀"),
        "function": NodeCategory(id="function", label="Function", color="#fd79a8", icon="🔧"),
        "storage": NodeCategory(id="storage", label="Storage", color="#e17055", icon="💾"),
        "hardware": NodeCategory(id="hardware", label="Hardware", color="#00b894", icon="📱"),
        "api": NodeCategory(id="api", label="API", color="#a29bfe", icon="🌐"),
    }
)

PIN_COLORS: Mapping[str, str] = MappingProxyType(
    {
        "exec": "#e8e6f0",
        "string": "#fdcb6e",
        "number": "#74b9ff",
        "boolean": "#ff6b6b",
        "any": "#a29bfe",
        "list": "#55efc4",
    }
)


def _exec(pin_id: str = "exec", label: str = "") -> PinDef:
    return PinDef(id=pin_id, label=label, type="exec")


def _pin(pin_id: str, label: str, pin_type: str) -> PinDef:
    return PinDef(id=pin_id, label=label, type=pin_type)


def _prop(prop_type: str, label: str, default: Any, options: Optional[List[str]] = None) -> PropertySchema:
    return PropertySchema(
        type=prop_type,
        label=label,
        default=default,
        options=tuple(options) if options else None,
    )


def _node(
    type_id: str,
    category: str,
    label: str,
    description: str,
    *,
    inputs: tuple = (),
    outputs: tuple = (),
    properties: Optional[Dict[str, PropertySchema]] = None,
) -> NodeTypeDefinition:
    return NodeTypeDefinition(
        type=type_id,
        category=category,
        label=label,
        description=description,
        inputs=tuple(inputs),
        outputs=tuple(outputs),
        properties=MappingProxyType(dict(properties or {})),
    )


_TARGET = {"targetId": _prop("string", "Target component", "")}
_STORAGE_KEY = {"key": _prop("string", "Key", "myKey")}
_FUNC_NAME = {"funcName": _prop("string", "Function name", "myFunction")}


_DEFINITIONS: List[NodeTypeDefinition] = [
    # Events
    _node("onAppStart", "event", "App start", "Runs when the app starts", outputs=(_exec(),)),
    _node(
        "onClick",
        "event",
        "Click event",
        "Runs when a UI component is clicked",
        outputs=(_exec(),),
        properties=_TARGET,
    ),
    _node(
        "onKeyPress",
        "event",
        "Key press event",
        "Runs when a specific key is pressed",
        outputs=(_exec(), _pin("key", "Key", "string")),
        properties={"key": _prop("string", "Key", "")},
    ),
    _node(
        "onTimer",
        "event",
        "Timer",
        "Runs repeatedly at a fixed interval",
        outputs=(_exec(),),
        properties={
            "interval": _prop("number", "Interval (ms)", 1000),
            "repeat": _prop("boolean", "Repeat", True),
        },
    ),
    # Actions
    _node(
        "setText",
        "action",
        "Set text",
        "Changes the text of a UI component",
        inputs=(_exec(), _pin("value", "Value", "string")),
        outputs=(_exec(),),
        properties=_TARGET,
    ),
    _node(
        "setStyle",
        "action",
        "Set style",
        "Changes a style property of a UI component",
        inputs=(_exec(), _pin("value", "Value", "string")),
        outputs=(_exec(),),
        properties={**_TARGET, "property": _prop("string", "CSS property", "color")},
    ),
    _node(
        "showAlert",
        "action",
        "Show alert",
        "Shows an alert message",
        inputs=(_exec(), _pin("message", "Message", "string")),
        outputs=(_exec(),),
    ),
    _node(
        "log",
        "action",
        "Log",
        "Writes a message to the log",
        inputs=(_exec(), _pin("message", "Message", "any")),
        outputs=(_exec(),),
    ),
    _node(
        "setVariable",
        "action",
        "Set variable",
        "Stores a value in a variable",
        inputs=(_exec(), _pin("value", "Value", "any")),
        outputs=(_exec(),),
        properties={"varName": _prop("string", "Variable name", "myVar")},
    ),
    _node(
        "navigatePage",
        "action",
        "Navigate page",
        "Switches the visible UI page",
        inputs=(_exec(),),
        outputs=(_exec(),),
        properties={"pageId": _prop("string", "Page ID", "page_0")},
    ),
    # Data
    _node(
        "stringLiteral",
        "data",
        "String",
        "Constant string value",
        outputs=(_pin("value", "Value", "string"),),
        properties={"value": _prop("string", "Value", "Hello")},
    ),
    _node(
        "numberLiteral",
        "data",
        "Number",
        "Constant number value",
        outputs=(_pin("value", "Value", "number"),),
        properties={"value": _prop("number", "Value", 0)},
    ),
    _node(
        "getVariable",
        "data",
        "Get variable",
        "Reads a stored variable",
        outputs=(_pin("value", "Value", "any"),),
        properties={"varName": _prop("string", "Variable name", "myVar")},
    ),
    _node(
        "concat",
        "data",
        "Concatenate",
        "Joins two strings",
        inputs=(_pin("a", "A", "string"), _pin("b", "B", "string")),
        outputs=(_pin("value", "Result", "string"),),
    ),
    _node(
        "mathOp",
        "data",
        "Math operation",
        "Arithmetic on two numbers",
        inputs=(_pin("a", "A", "number"), _pin("b", "B", "number")),
        outputs=(_pin("value", "Result", "number"),),
        properties={"operator": _prop("select", "Operator", "+", ["+", "-", "*", "/"])},
    ),
    _node(
        "getInputValue",
        "data",
        "Get input value",
        "Reads the value of a UI input",
        outputs=(_pin("value", "Value", "string"),),
        properties=_TARGET,
    ),
    _node(
        "createList",
        "data",
        "Create list",
        "Creates an empty list",
        outputs=(_pin("value", "List", "list"),),
    ),
    _node(
        "listAdd",
        "data",
        "List add",
        "Appends an item to a list",
        inputs=(_exec(), _pin("list", "List", "list"), _pin("item", "Item", "any")),
        outputs=(_exec(), _pin("value", "Result", "list")),
    ),
    _node(
        "listGet",
        "data",
        "List get",
        "Gets an item by index",
        inputs=(_pin("list", "List", "list"), _pin("index", "Index", "number")),
        outputs=(_pin("value", "Value", "any"),),
    ),
    _node(
        "listRemove",
        "data",
        "List remove",
        "Removes the item at an index",
        inputs=(_exec(), _pin("list", "List", "list"), _pin("index", "Index", "number")),
        outputs=(_exec(), _pin("value", "Result", "list")),
    ),
    _node(
        "listLength",
        "data",
        "List length",
        "Returns the number of items",
        inputs=(_pin("list", "List", "list"),),
        outputs=(_pin("value", "Length", "number"),),
    ),
    _node(
        "toNumber",
        "data",
        "To number",
        "Converts a value to a number",
        inputs=(_pin("value", "Value", "any"),),
        outputs=(_pin("value", "Number", "number"),),
    ),
    _node(
        "toString",
        "data",
        "To string",
        "Converts a value to a string",
        inputs=(_pin("value", "Value", "any"),),
        outputs=(_pin("value", "String", "string"),),
    ),
    _node(
        "randomNumber",
        "data",
        "Random number",
        "Generates a random number in a range",
        outputs=(_pin("value", "Value", "number"),),
        properties={
            "min": _prop("number", "Min", 0),
            "max": _prop("number", "Max", 100),
            "integer": _prop("boolean", "Integer only", True),
        },
    ),
    # Logic
    _node(
        "ifCondition",
        "logic",
        "If",
        "Branches on a condition",
        inputs=(_exec(), _pin("condition", "Condition", "boolean")),
        outputs=(_exec("true", "True"), _exec("false", "False")),
    ),
    _node(
        "compare",
        "logic",
        "Compare",
        "Compares two values",
        inputs=(_pin("a", "A", "any"), _pin("b", "B", "any")),
        outputs=(_pin("result", "Result", "boolean"),),
        properties={
            "operator": _prop("select", "Operator", "==", ["==", "!=", ">", "<", ">=", "<="]),
        },
    ),
    _node(
        "not",
        "logic",
        "NOT",
        "Inverts a boolean",
        inputs=(_pin("value", "Value", "boolean"),),
        outputs=(_pin("result", "Result", "boolean"),),
    ),
    _node(
        "andOr",
        "logic",
        "AND / OR",
        "Combines two booleans",
        inputs=(_pin("a", "A", "boolean"), _pin("b", "B", "boolean")),
        outputs=(_pin("result", "Result", "boolean"),),
        properties={"operator": _prop("select", "Operator", "AND", ["AND", "OR"])},
    ),
    _node(
        "forLoop",
        "logic",
        "For loop",
        "Repeats for each index in [start, end)",
        inputs=(_exec(), _pin("start", "Start", "number"), _pin("end", "End", "number")),
        outputs=(_exec("loop", "Loop"), _exec("done", "Done"), _pin("index", "Index", "number")),
    ),
    _node(
        "whileLoop",
        "logic",
        "While loop",
        "Repeats while a condition holds",
        inputs=(_exec(), _pin("condition", "Condition", "boolean")),
        outputs=(_exec("loop", "Loop"), _exec("done", "Done")),
        properties={"maxIterations": _prop("number", "Max iterations", 1000)},
    ),
    # Storage
    _node(
        "saveData",
        "storage",
        "Save data",
        "Stores a value under a key",
        inputs=(_exec(), _pin("value", "Value", "any")),
        outputs=(_exec(),),
        properties=_STORAGE_KEY,
    ),
    _node(
        "loadData",
        "storage",
        "Load data",
        "Reads the value stored under a key",
        outputs=(_pin("value", "Value", "any"),),
        properties=_STORAGE_KEY,
    ),
    _node(
        "deleteData",
        "storage",
        "Delete data",
        "Removes a key from storage",
        inputs=(_exec(),),
        outputs=(_exec(),),
        properties=_STORAGE_KEY,
    ),
    # Hardware
    _node(
        "getClipboard",
        "hardware",
        "Read clipboard",
        "Reads text from the clipboard",
        inputs=(_exec(),),
        outputs=(_exec(), _pin("value", "Text", "string")),
    ),
    _node(
        "setClipboard",
        "hardware",
        "Copy to clipboard",
        "Writes text to the clipboard",
        inputs=(_exec(), _pin("value", "Text", "string")),
        outputs=(_exec(),),
    ),
    _node(
        "getLocation",
        "hardware",
        "GPS location",
        "Gets the current position",
        inputs=(_exec(),),
        outputs=(_exec(), _pin("lat", "Latitude", "number"), _pin("lon", "Longitude", "number")),
    ),
    _node(
        "getBattery",
        "hardware",
        "Battery",
        "Gets the battery level",
        inputs=(_exec(),),
        outputs=(_exec(), _pin("level", "Level (%)", "number"), _pin("charging", "Charging", "boolean")),
    ),
    _node(
        "sendNotification",
        "hardware",
        "Send notification",
        "Shows a desktop notification",
        inputs=(_exec(), _pin("body", "Body", "string")),
        outputs=(_exec(),),
        properties={"title": _prop("string", "Title", "EssentialBoardOS")},
    ),
    # API
    _node(
        "geminiChat",
        "api",
        "Gemini chat",
        "Asks the chat backend for a reply",
        inputs=(_exec(), _pin("prompt", "Prompt", "string")),
        outputs=(_exec(), _pin("response", "Response", "string")),
        properties={"template": _prop("string", "Template", "")},
    ),
    _node(
        "httpRequest",
        "api",
        "HTTP request",
        "Calls an external API through the proxy",
        inputs=(_exec(), _pin("url", "URL", "string"), _pin("body", "Body", "string")),
        outputs=(
            _exec(),
            _exec("execError", "Error"),
            _pin("data", "Response data", "any"),
            _pin("status", "Status code", "number"),
        ),
        properties={
            "method": _prop("select", "Method", "GET", ["GET", "POST", "PUT", "DELETE", "PATCH"]),
            "jsonPath": _prop("string", "JSON path", ""),
            "headers": _prop("string", "Headers (JSON)", "{}"),
        },
    ),
    # Functions
    _node(
        "functionDefine",
        "function",
        "Define function",
        "Defines a reusable function body",
        outputs=(_exec(), _pin("param1", "Parameter 1", "any"), _pin("param2", "Parameter 2", "any")),
        properties=_FUNC_NAME,
    ),
    _node(
        "functionReturn",
        "function",
        "Return",
        "Returns a value from the current function",
        inputs=(_exec(), _pin("value", "Return value", "any")),
    ),
    _node(
        "functionCall",
        "function",
        "Call function",
        "Calls a defined function",
        inputs=(_exec(), _pin("param1", "Parameter 1", "any"), _pin("param2", "Parameter 2", "any")),
        outputs=(_exec(), _pin("result", "Result", "any")),
        properties=_FUNC_NAME,
    ),
]


NODE_TYPES: Mapping[str, NodeTypeDefinition] = MappingProxyType({d.type: d for d in _DEFINITIONS})


def get_node_def(node_type: str) -> Optional[NodeTypeDefinition]:
    """Look up a node type definition (None when unknown)."""
    return NODE_TYPES.get(node_type)


def get_category_info(category_id: str) -> Optional[NodeCategory]:
    return NODE_CATEGORIES.get(category_id)


def list_by_category() -> Dict[str, List[NodeTypeDefinition]]:
    """Group definitions by category, preserving catalog order."""
    grouped: Dict[str, List[NodeTypeDefinition]] = {}
    for definition in NODE_TYPES.values():
        grouped.setdefault(definition.category, []).append(definition)
    return grouped


_instance_counter = itertools.count()


def new_node_id() -> str:
    return f"node_{int(time.time() * 1000)}_{next(_instance_counter)}"


def create_node_instance(node_type: str, x: float = 0, y: float = 0) -> Optional[NodeInstance]:
    """Create a fresh node instance with properties set to their defaults.

    Returns None for unknown types.
    """
    definition = get_node_def(node_type)
    if definition is None:
        return None
    return NodeInstance(
        id=new_node_id(),
        type=definition.type,
        x=x,
        y=y,
        properties=definition.default_properties(),
    )
