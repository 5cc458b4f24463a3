"""Node behaviors: what each node type does when executed or evaluated.

Every node type in the catalog has one behavior instance, registered by type
id. A behavior has two entry points:

- `execute(rt, ctx, node)`: control flow (push). Called when an exec wire
  reaches the node. Behaviors continue the chain themselves by calling
  `rt.execute_from_pin(...)` on the exec output they choose.
- `evaluate(rt, ctx, node, output_pin)`: data flow (pull). Called when a
  downstream input pin needs this node's output. Not memoized.

The base class does nothing for both, which is also how unknown types behave.
"""

from __future__ import annotations

import asyncio
import json
import math
import random
from typing import TYPE_CHECKING, Any, Dict, Optional, Type

from ..document.models import NodeInstance
from ..integrations.host import NOTIFICATION_DENIED, NOTIFICATION_GRANTED
from ..integrations.http_proxy import ProxyRequest
from .state import CallFrame, ChainContext
from .values import apply_math, compare_values, is_truthy, to_index, to_list, to_number, to_text

if TYPE_CHECKING:  # pragma: no cover
    from .runtime import MiniAppRuntime


EXEC = "exec"


class NodeBehavior:
    node_types: tuple = ()

    async def execute(self, rt: "MiniAppRuntime", ctx: ChainContext, node: NodeInstance) -> None:
        return None

    async def evaluate(self, rt: "MiniAppRuntime", ctx: ChainContext, node: NodeInstance, output_pin: str) -> Any:
        return None


BEHAVIORS: Dict[str, NodeBehavior] = {}


def register(cls: Type[NodeBehavior]) -> Type[NodeBehavior]:
    instance = cls()
    for node_type in cls.node_types:
        BEHAVIORS[node_type] = instance
    return cls


def get_behavior(node_type: str) -> Optional[NodeBehavior]:
    """Get the behavior for a node type (None for unknown types)."""
    return BEHAVIORS.get(node_type)


class PassThrough(NodeBehavior):
    """Performs its effect, then continues via the `exec` output."""

    async def execute(self, rt: "MiniAppRuntime", ctx: ChainContext, node: NodeInstance) -> None:
        if await self.run(rt, ctx, node) is False:
            return
        await rt.execute_from_pin(ctx, node.id, EXEC)

    async def run(self, rt: "MiniAppRuntime", ctx: ChainContext, node: NodeInstance) -> Optional[bool]:
        """Return False to halt the chain at this node."""
        return None


# --- Events ---


@register
class Trigger(NodeBehavior):
    """Entry points. They are started by the runtime, never by a wire."""

    node_types = ("onAppStart", "onClick", "onTimer")


@register
class KeyPress(NodeBehavior):
    node_types = ("onKeyPress",)

    async def evaluate(self, rt, ctx, node, output_pin):
        if output_pin == "key":
            return rt.state(node.id).last_result or ""
        return None


# --- Actions ---


@register
class SetText(PassThrough):
    node_types = ("setText",)

    async def run(self, rt, ctx, node):
        value = await rt.resolve_input(ctx, node.id, "value")
        rt.emit_set_text(ctx, str(node.prop("targetId", "")), to_text(value))


@register
class SetStyle(PassThrough):
    node_types = ("setStyle",)

    async def run(self, rt, ctx, node):
        value = await rt.resolve_input(ctx, node.id, "value")
        rt.emit_set_style(ctx, str(node.prop("targetId", "")), str(node.prop("property", "color")), to_text(value))


@register
class ShowAlert(PassThrough):
    node_types = ("showAlert",)

    async def run(self, rt, ctx, node):
        message = await rt.resolve_input(ctx, node.id, "message")
        rt.emit_alert(ctx, "Alert" if message is None else to_text(message))


@register
class Log(PassThrough):
    node_types = ("log",)

    async def run(self, rt, ctx, node):
        message = await rt.resolve_input(ctx, node.id, "message")
        rt.log(to_text(message))


@register
class SetVariable(PassThrough):
    node_types = ("setVariable",)

    async def run(self, rt, ctx, node):
        value = await rt.resolve_input(ctx, node.id, "value")
        if rt.is_stale(ctx):
            return False
        rt.variables[str(node.prop("varName", "myVar"))] = value


@register
class NavigatePage(PassThrough):
    node_types = ("navigatePage",)

    async def run(self, rt, ctx, node):
        page_id = str(node.prop("pageId", rt.config.default_page_id))
        rt.log(f"Navigate to page: {page_id}")
        rt.emit_navigate_page(ctx, page_id)


# --- Data ---


@register
class StringLiteral(NodeBehavior):
    node_types = ("stringLiteral",)

    async def evaluate(self, rt, ctx, node, output_pin):
        value = node.properties.get("value")
        return "" if value is None else value


@register
class NumberLiteral(NodeBehavior):
    node_types = ("numberLiteral",)

    async def evaluate(self, rt, ctx, node, output_pin):
        return to_number(node.properties.get("value"))


@register
class GetVariable(NodeBehavior):
    node_types = ("getVariable",)

    async def evaluate(self, rt, ctx, node, output_pin):
        return rt.variables.get(str(node.prop("varName", "myVar")))


@register
class GetInputValue(NodeBehavior):
    node_types = ("getInputValue",)

    async def evaluate(self, rt, ctx, node, output_pin):
        return rt.callbacks.on_get_input_value(str(node.prop("targetId", "")))


@register
class Concat(NodeBehavior):
    node_types = ("concat",)

    async def evaluate(self, rt, ctx, node, output_pin):
        a = await rt.resolve_input(ctx, node.id, "a")
        b = await rt.resolve_input(ctx, node.id, "b")
        return to_text(a) + to_text(b)


@register
class MathOp(NodeBehavior):
    node_types = ("mathOp",)

    async def evaluate(self, rt, ctx, node, output_pin):
        a = await rt.resolve_input(ctx, node.id, "a")
        b = await rt.resolve_input(ctx, node.id, "b")
        return apply_math(a, b, str(node.prop("operator", "+")))


@register
class CreateList(NodeBehavior):
    node_types = ("createList",)

    async def evaluate(self, rt, ctx, node, output_pin):
        return []


@register
class ListAdd(PassThrough):
    node_types = ("listAdd",)

    async def run(self, rt, ctx, node):
        items = to_list(await rt.resolve_input(ctx, node.id, "list"))
        item = await rt.resolve_input(ctx, node.id, "item")
        rt.state(node.id).last_result = [*items, item]

    async def evaluate(self, rt, ctx, node, output_pin):
        result = rt.state(node.id).last_result
        return [] if result is None else result


async def _list_index(rt: "MiniAppRuntime", ctx: ChainContext, node: NodeInstance) -> Optional[int]:
    """Index input; an unwired or null index means 0."""
    value = await rt.resolve_input(ctx, node.id, "index")
    return to_index(0 if value is None else value)


@register
class ListRemove(ListAdd):
    node_types = ("listRemove",)

    async def run(self, rt, ctx, node):
        items = to_list(await rt.resolve_input(ctx, node.id, "list"))
        index = await _list_index(rt, ctx, node)
        if index is not None and 0 <= index < len(items):
            del items[index]
        rt.state(node.id).last_result = items


@register
class ListGet(NodeBehavior):
    node_types = ("listGet",)

    async def evaluate(self, rt, ctx, node, output_pin):
        items = await rt.resolve_input(ctx, node.id, "list")
        index = await _list_index(rt, ctx, node)
        if not isinstance(items, list) or index is None or not 0 <= index < len(items):
            return None
        return items[index]


@register
class ListLength(NodeBehavior):
    node_types = ("listLength",)

    async def evaluate(self, rt, ctx, node, output_pin):
        items = await rt.resolve_input(ctx, node.id, "list")
        return len(items) if isinstance(items, list) else 0


@register
class ToNumber(NodeBehavior):
    node_types = ("toNumber",)

    async def evaluate(self, rt, ctx, node, output_pin):
        return to_number(await rt.resolve_input(ctx, node.id, "value"))


@register
class ToString(NodeBehavior):
    node_types = ("toString",)

    async def evaluate(self, rt, ctx, node, output_pin):
        return to_text(await rt.resolve_input(ctx, node.id, "value"))


@register
class RandomNumber(NodeBehavior):
    node_types = ("randomNumber",)

    async def evaluate(self, rt, ctx, node, output_pin):
        low = to_number(node.properties.get("min", 0))
        high = to_number(node.properties.get("max", 100), 100)
        value = random.random() * (high - low) + low
        if node.properties.get("integer") is not False:
            return math.floor(value)
        return value


# --- Logic ---


@register
class IfCondition(NodeBehavior):
    node_types = ("ifCondition",)

    async def execute(self, rt, ctx, node):
        condition = await rt.resolve_input(ctx, node.id, "condition")
        await rt.execute_from_pin(ctx, node.id, "true" if is_truthy(condition) else "false")


@register
class Compare(NodeBehavior):
    node_types = ("compare",)

    async def evaluate(self, rt, ctx, node, output_pin):
        a = await rt.resolve_input(ctx, node.id, "a")
        b = await rt.resolve_input(ctx, node.id, "b")
        return compare_values(a, b, str(node.prop("operator", "==")))


@register
class Not(NodeBehavior):
    node_types = ("not",)

    async def evaluate(self, rt, ctx, node, output_pin):
        return not is_truthy(await rt.resolve_input(ctx, node.id, "value"))


@register
class AndOr(NodeBehavior):
    node_types = ("andOr",)

    async def evaluate(self, rt, ctx, node, output_pin):
        a = await rt.resolve_input(ctx, node.id, "a")
        b = await rt.resolve_input(ctx, node.id, "b")
        if node.prop("operator", "AND") == "AND":
            return b if is_truthy(a) else a
        return a if is_truthy(a) else b


@register
class ForLoop(NodeBehavior):
    node_types = ("forLoop",)

    async def execute(self, rt, ctx, node):
        start = to_number(await rt.resolve_input(ctx, node.id, "start"))
        end = to_number(await rt.resolve_input(ctx, node.id, "end"))
        state = rt.state(node.id)
        i = start
        while i < end:
            if rt.is_stale(ctx):
                return
            state.current_index = i
            await rt.execute_from_pin(ctx, node.id, "loop")
            i += 1
        await rt.execute_from_pin(ctx, node.id, "done")

    async def evaluate(self, rt, ctx, node, output_pin):
        index = rt.state(node.id).current_index
        return 0 if index is None else index


@register
class WhileLoop(NodeBehavior):
    node_types = ("whileLoop",)

    async def execute(self, rt, ctx, node):
        max_iterations = to_number(node.properties.get("maxIterations")) or rt.config.default_max_iterations
        count = 0
        while count < max_iterations:
            if rt.is_stale(ctx):
                return
            condition = await rt.resolve_input(ctx, node.id, "condition")
            if not is_truthy(condition):
                break
            await rt.execute_from_pin(ctx, node.id, "loop")
            count += 1
        if count >= max_iterations:
            rt.log(f"While loop reached max iterations ({max_iterations})", level="warning")
        await rt.execute_from_pin(ctx, node.id, "done")


# --- Storage ---


@register
class SaveData(PassThrough):
    node_types = ("saveData",)

    async def run(self, rt, ctx, node):
        value = await rt.resolve_input(ctx, node.id, "value")
        key = rt.config.storage_key(node.properties.get("key"))
        try:
            rt.storage.set(key, json.dumps(value, ensure_ascii=False))
            rt.log(f"Saved: {key}")
        except Exception as e:
            rt.log(f"Save failed: {e}", level="error")


@register
class LoadData(NodeBehavior):
    node_types = ("loadData",)

    async def evaluate(self, rt, ctx, node, output_pin):
        key = rt.config.storage_key(node.properties.get("key"))
        try:
            raw = rt.storage.get(key)
            return json.loads(raw) if raw else None
        except Exception as e:
            rt.log(f"Load failed: {e}", level="error")
            return None


@register
class DeleteData(PassThrough):
    node_types = ("deleteData",)

    async def run(self, rt, ctx, node):
        key = rt.config.storage_key(node.properties.get("key"))
        try:
            rt.storage.delete(key)
            rt.log(f"Deleted: {key}")
        except Exception as e:
            rt.log(f"Delete failed: {e}", level="error")


# --- Hardware (fail-soft: log, store defaults, continue `exec`) ---


@register
class GetClipboard(PassThrough):
    node_types = ("getClipboard",)

    async def run(self, rt, ctx, node):
        state = rt.state(node.id)
        try:
            text = await rt.host.read_clipboard()
        except Exception as e:
            if rt.is_stale(ctx):
                return False
            state.last_result = ""
            rt.log(f"Clipboard read failed: {e}", level="warning")
            return None
        if rt.is_stale(ctx):
            return False
        state.last_result = text
        rt.log("Clipboard read")

    async def evaluate(self, rt, ctx, node, output_pin):
        return rt.state(node.id).last_result or ""


@register
class SetClipboard(PassThrough):
    node_types = ("setClipboard",)

    async def run(self, rt, ctx, node):
        value = await rt.resolve_input(ctx, node.id, "value")
        try:
            await rt.host.write_clipboard(to_text(value))
        except Exception as e:
            if rt.is_stale(ctx):
                return False
            rt.log(f"Clipboard write failed: {e}", level="warning")
            return None
        if rt.is_stale(ctx):
            return False
        rt.log("Copied to clipboard")


@register
class GetLocation(PassThrough):
    node_types = ("getLocation",)

    async def run(self, rt, ctx, node):
        state = rt.state(node.id)
        timeout_s = rt.config.geolocation_timeout_s
        try:
            position = await asyncio.wait_for(rt.host.get_position(timeout_s), timeout=timeout_s)
        except Exception as e:
            if rt.is_stale(ctx):
                return False
            state.last_lat = 0
            state.last_lon = 0
            rt.log(f"GPS unavailable: {e}", level="warning")
            return None
        if rt.is_stale(ctx):
            return False
        state.last_lat = position.latitude
        state.last_lon = position.longitude
        rt.log(f"Location: {position.latitude:.4f}, {position.longitude:.4f}")

    async def evaluate(self, rt, ctx, node, output_pin):
        state = rt.state(node.id)
        value = state.last_lon if output_pin == "lon" else state.last_lat
        return 0 if value is None else value


@register
class GetBattery(PassThrough):
    node_types = ("getBattery",)

    async def run(self, rt, ctx, node):
        state = rt.state(node.id)
        try:
            battery = await rt.host.get_battery()
        except Exception as e:
            if rt.is_stale(ctx):
                return False
            state.last_level = 0
            state.last_charging = False
            rt.log(f"Battery info unavailable: {e}", level="warning")
            return None
        if rt.is_stale(ctx):
            return False
        state.last_level = round(battery.level * 100)
        state.last_charging = bool(battery.charging)
        status = "charging" if state.last_charging else "discharging"
        rt.log(f"Battery: {state.last_level}% ({status})")

    async def evaluate(self, rt, ctx, node, output_pin):
        state = rt.state(node.id)
        if output_pin == "charging":
            return bool(state.last_charging)
        return 0 if state.last_level is None else state.last_level


@register
class SendNotification(PassThrough):
    node_types = ("sendNotification",)

    async def run(self, rt, ctx, node):
        body = to_text(await rt.resolve_input(ctx, node.id, "body"))
        title = str(node.prop("title", rt.config.default_notification_title))
        try:
            permission = rt.host.notification_permission()
            if permission != NOTIFICATION_GRANTED and permission != NOTIFICATION_DENIED:
                permission = await rt.host.request_notification_permission()
            if rt.is_stale(ctx):
                return False
            if permission != NOTIFICATION_GRANTED:
                rt.log(f"Notification not permitted: {title}", level="warning")
                return None
            await rt.host.notify(title, body)
        except Exception as e:
            if rt.is_stale(ctx):
                return False
            rt.log(f"Notification failed: {e}", level="warning")
            return None
        rt.log(f"Notification sent: {title}")


# --- API ---


@register
class GeminiChat(PassThrough):
    """The reply is fetched on pull, when something reads `response`."""

    node_types = ("geminiChat",)

    async def evaluate(self, rt, ctx, node, output_pin):
        prompt = to_text(await rt.resolve_input(ctx, node.id, "prompt"))
        template = str(node.properties.get("template") or "")
        full_prompt = f"{template}\n\n{prompt}" if template else prompt
        try:
            reply = await rt.host.chat(full_prompt)
        except Exception as e:
            rt.log(f"Chat request failed: {e}", level="warning")
            return "[Gemini API connection failed]"
        return reply or "[No response]"


def _parse_headers(raw: Any) -> Dict[str, str]:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw or "{}")
        except ValueError:
            return {}
    if not isinstance(raw, dict):
        return {}
    return {str(k): to_text(v) for k, v in raw.items()}


def _request_body(raw: Any) -> Any:
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except ValueError:
            return raw
    return raw


@register
class HttpRequest(NodeBehavior):
    """Fail-hard: failures continue via `execError` instead of `exec`."""

    node_types = ("httpRequest",)

    async def execute(self, rt, ctx, node):
        url = await rt.resolve_input(ctx, node.id, "url") or node.properties.get("url") or ""
        body_input = await rt.resolve_input(ctx, node.id, "body")
        method = str(node.prop("method", "GET")).upper()
        request = ProxyRequest(
            url=to_text(url),
            method=method,
            headers=_parse_headers(node.properties.get("headers")),
            body=_request_body(body_input) if is_truthy(body_input) and method != "GET" else None,
            json_path=str(node.properties.get("jsonPath") or ""),
        )
        rt.log(f"HTTP {method} → {request.url}")

        state = rt.state(node.id)
        try:
            response = await rt.proxy.request(request)
        except Exception as e:
            if rt.is_stale(ctx):
                return
            rt.log(f"HTTP Error: {e}", level="error")
            state.last_result = None
            state.last_status = 0
            await rt.execute_from_pin(ctx, node.id, "execError")
            return

        if rt.is_stale(ctx):
            return
        state.last_result = response.data
        state.last_status = response.status
        rt.log(f"HTTP {response.status} {response.status_text}".rstrip())
        await rt.execute_from_pin(ctx, node.id, EXEC)

    async def evaluate(self, rt, ctx, node, output_pin):
        state = rt.state(node.id)
        if output_pin == "status":
            return state.last_status or 0
        return state.last_result


# --- Functions ---


def _function_name(rt: "MiniAppRuntime", node: NodeInstance) -> str:
    return str(node.prop("funcName", rt.config.default_function_name))


@register
class FunctionDefine(PassThrough):
    """Body entry point; its param pins read the innermost matching call frame."""

    node_types = ("functionDefine",)

    async def evaluate(self, rt, ctx, node, output_pin):
        if output_pin not in ("param1", "param2"):
            return None
        frame = ctx.frame_for(_function_name(rt, node))
        if frame is None:
            return None
        return frame.params.get(output_pin)


@register
class FunctionReturn(NodeBehavior):
    node_types = ("functionReturn",)

    async def execute(self, rt, ctx, node):
        value = await rt.resolve_input(ctx, node.id, "value")
        frame = ctx.current_frame()
        if frame is None:
            rt.log(f"Return outside of a function call ({node.id})", level="warning")
            return
        frame.return_value = value


@register
class FunctionCall(PassThrough):
    node_types = ("functionCall",)

    async def run(self, rt, ctx, node):
        name = _function_name(rt, node)
        define_id = rt.functions.get(name)
        if define_id is None:
            rt.log(f"Function '{name}' not found", level="error")
            return False
        if ctx.depth >= rt.config.max_call_depth:
            rt.log(f"Function '{name}' exceeded max call depth ({rt.config.max_call_depth})", level="error")
            return False

        param1 = await rt.resolve_input(ctx, node.id, "param1")
        param2 = await rt.resolve_input(ctx, node.id, "param2")
        frame = CallFrame(function_name=name, params={"param1": param1, "param2": param2})
        ctx.frames.append(frame)
        try:
            await rt.execute_node(ctx, define_id)
        finally:
            ctx.frames.pop()

        if rt.is_stale(ctx):
            return False
        rt.state(node.id).last_result = frame.return_value
        rt.log(f"Function '{name}' completed")

    async def evaluate(self, rt, ctx, node, output_pin):
        return rt.state(node.id).last_result

