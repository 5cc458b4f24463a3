"""Value coercion used by node behaviors.

Mini-app documents are authored in a loosely typed editor: pins typed
`number` may receive strings, `list` pins may receive nothing at all. These
helpers give every behavior the same forgiving conversions.
"""

from __future__ import annotations

import json
import math
from typing import Any, List, Optional


def normalize_number(value: float) -> Any:
    """Collapse integral floats to int (`5.0` -> `5`); NaN becomes 0."""
    if isinstance(value, float):
        if math.isnan(value):
            return 0
        if math.isfinite(value) and value.is_integer():
            return int(value)
    return value


def to_number(value: Any, default: Any = 0) -> Any:
    """Best-effort numeric conversion; unparseable input yields `default`."""
    if value is None:
        return default
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return default if math.isnan(value) else value
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return 0
        try:
            return int(s)
        except ValueError:
            pass
        try:
            f = float(s)
        except ValueError:
            return default
        return default if math.isnan(f) else f
    return default


def to_index(value: Any) -> Optional[int]:
    """Integer index or None when the value is not integral."""
    n = to_number(value, None)
    if n is None:
        return None
    if isinstance(n, float):
        if not math.isfinite(n) or not n.is_integer():
            return None
        return int(n)
    return n


def to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(normalize_number(value))
    if isinstance(value, list):
        return ",".join(to_text(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def to_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, list) else []


def is_truthy(value: Any) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (bool, int, float, str))


def loose_equals(a: Any, b: Any) -> bool:
    """Equality across number/string/bool (`5 == "5"`); None only equals None."""
    if a is None or b is None:
        return a is None and b is None
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    if _is_scalar(a) and _is_scalar(b):
        na, nb = to_number(a, None), to_number(b, None)
        if na is None or nb is None:
            return False
        return na == nb
    return a == b


def compare_values(a: Any, b: Any, operator: str) -> bool:
    if operator == "==":
        return loose_equals(a, b)
    if operator == "!=":
        return not loose_equals(a, b)

    if isinstance(a, str) and isinstance(b, str):
        left: Any = a
        right: Any = b
    else:
        left = to_number(a, None)
        right = to_number(b, None)
        if left is None or right is None:
            return False

    if operator == ">":
        return left > right
    if operator == "<":
        return left < right
    if operator == ">=":
        return left >= right
    if operator == "<=":
        return left <= right
    return False


def apply_math(a: Any, b: Any, operator: str) -> Any:
    x = to_number(a)
    y = to_number(b)
    if operator == "+":
        result = x + y
    elif operator == "-":
        result = x - y
    elif operator == "*":
        result = x * y
    elif operator == "/":
        if y == 0:
            return 0
        result = x / y
    else:
        return 0
    return normalize_number(result)
