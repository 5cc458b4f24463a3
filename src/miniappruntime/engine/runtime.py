"""miniappruntime.engine.runtime

The mini-app interpreter.

A `MiniAppRuntime` is built from a validated document plus UI callbacks and
host capabilities. It never mutates the caller's document: nodes are copied
on construction and per-node scratch values live in a separate
`NodeRuntimeState` arena.

Execution model (asyncio, single thread):
- Exec wires are pushed: `execute_from_pin` runs every wire leaving a pin,
  one after another in document order, each fully awaited.
- Data wires are pulled: `resolve_input` evaluates the source node's output on
  demand, recursively, without caching.
- Each trigger (app start, timer tick, UI event) runs as one chain with its own
  `ChainContext`. Chains started before `stop()` carry an old epoch; their
  late host results and UI callbacks are dropped.
"""

from __future__ import annotations

import asyncio
import copy
from datetime import datetime
from typing import Any, Dict, List, Optional, Set, Tuple

from ..catalog.node_types import get_category_info, get_node_def
from ..core.config import RuntimeConfig
from ..core.logging import get_logger
from ..document.models import Connection, MiniApp, NodeInstance, load_app_json
from ..integrations.host import HostCapabilities
from ..integrations.http_proxy import HttpProxy, HttpxProxy
from ..storage.base import KeyValueStore
from ..storage.in_memory import InMemoryKeyValueStore
from .behaviors import get_behavior
from .state import ChainContext, LogEntry, NodeRuntimeState, RuntimeCallbacks
from .values import to_number

logger = get_logger(__name__)

STATUS_CONSTRUCTED = "constructed"
STATUS_STARTED = "started"
STATUS_STOPPED = "stopped"

_LOG_LEVELS = {"debug", "info", "warning", "error"}

PinKey = Tuple[str, str]


class MiniAppRuntime:
    def __init__(
        self,
        app: Any,
        callbacks: Optional[RuntimeCallbacks] = None,
        *,
        host: Optional[HostCapabilities] = None,
        storage: Optional[KeyValueStore] = None,
        proxy: Optional[HttpProxy] = None,
        config: Optional[RuntimeConfig] = None,
    ):
        self.app: MiniApp = load_app_json(app)
        self.config = config or RuntimeConfig()
        self.callbacks = callbacks or RuntimeCallbacks()
        self.host = host or HostCapabilities()
        self.storage: KeyValueStore = storage if storage is not None else InMemoryKeyValueStore()
        self.proxy: HttpProxy = proxy or HttpxProxy(timeout_s=self.config.http_timeout_s)

        self.nodes: Dict[str, NodeInstance] = {}
        self.connections: List[Connection] = []
        self.variables: Dict[str, Any] = {}
        self.functions: Dict[str, str] = {}
        self.node_state: Dict[str, NodeRuntimeState] = {}
        self.logs: List[LogEntry] = []

        self._outgoing: Dict[PinKey, List[Connection]] = {}
        self._incoming: Dict[PinKey, Connection] = {}
        self._timers: List[asyncio.Task] = []
        self._chains: Set[asyncio.Task] = set()
        self._epoch = 0
        self._status = STATUS_CONSTRUCTED

        self._index()

    def _index(self) -> None:
        for node in self.app.nodes:
            self.nodes[node.id] = copy.deepcopy(node)

        self.connections = list(self.app.connections)
        for conn in self.connections:
            key = (conn.source.node_id, conn.source.pin_id)
            self._outgoing.setdefault(key, []).append(conn)
            # An input pin takes one wire; the first one listed wins.
            self._incoming.setdefault((conn.target.node_id, conn.target.pin_id), conn)

        for node in self.nodes.values():
            if node.type == "functionDefine":
                self.functions[str(node.prop("funcName", self.config.default_function_name))] = node.id

    # --- Lifecycle ---

    @property
    def status(self) -> str:
        return self._status

    @property
    def epoch(self) -> int:
        return self._epoch

    async def start(self) -> None:
        """Run every onAppStart chain (in document order), then arm timers."""
        if self._status == STATUS_STARTED:
            logger.warning("Runtime already started", app_id=self.app.id)
            return
        self.logs = []
        self._status = STATUS_STARTED
        self.log("Runtime started")

        for node in self._nodes_of_type("onAppStart"):
            await self._run_chain(node.id, "exec")

        if self._status != STATUS_STARTED:
            return
        for node in self._nodes_of_type("onTimer"):
            interval_ms = to_number(node.properties.get("interval")) or self.config.default_timer_interval_ms
            repeat = node.properties.get("repeat") is not False
            task = asyncio.create_task(self._timer_loop(node.id, max(float(interval_ms), 1.0) / 1000.0, repeat))
            self._timers.append(task)

    def stop(self) -> None:
        """Cancel timers and invalidate chains that are still running.

        In-flight host calls are not interrupted, but whatever they return
        after this point is discarded.
        """
        for task in self._timers:
            task.cancel()
        self._timers = []
        self._epoch += 1
        self._status = STATUS_STOPPED
        self.log("Runtime stopped")

    async def handle_event(self, event_type: str, target_id: str) -> None:
        """Run the chains of event nodes matching `event_type` and `target_id`.

        onKeyPress nodes match on their `key` property (empty matches any key)
        and remember the delivered key for their `key` output. Events are
        ignored once the runtime is stopped.
        """
        if self._status == STATUS_STOPPED:
            logger.debug("Event ignored after stop", event_type=event_type, target_id=target_id)
            return
        for node in self._nodes_of_type(event_type):
            if node.type == "onKeyPress":
                wanted = node.properties.get("key") or ""
                if wanted and wanted != target_id:
                    continue
                self.state(node.id).last_result = target_id
            elif node.properties.get("targetId") != target_id:
                continue
            await self._run_chain(node.id, "exec")

    def dispatch_event(self, event_type: str, target_id: str) -> asyncio.Task:
        """Schedule `handle_event` without waiting for it."""
        return self._track(asyncio.create_task(self.handle_event(event_type, target_id)))

    async def wait_idle(self) -> None:
        """Wait until every chain spawned by timers/dispatch has finished."""
        while self._chains:
            await asyncio.gather(*list(self._chains), return_exceptions=True)

    async def _timer_loop(self, node_id: str, interval_s: float, repeat: bool) -> None:
        while True:
            await asyncio.sleep(interval_s)
            self._track(asyncio.create_task(self._run_chain(node_id, "exec")))
            if not repeat:
                return

    def _track(self, task: asyncio.Task) -> asyncio.Task:
        self._chains.add(task)
        task.add_done_callback(self._chains.discard)
        return task

    async def _run_chain(self, node_id: str, pin_id: str) -> None:
        ctx = ChainContext(epoch=self._epoch)
        await self.execute_from_pin(ctx, node_id, pin_id)

    def _nodes_of_type(self, node_type: str) -> List[NodeInstance]:
        return [n for n in self.nodes.values() if n.type == node_type]

    # --- Control flow (push) ---

    def is_stale(self, ctx: ChainContext) -> bool:
        return ctx.epoch != self._epoch

    async def execute_from_pin(self, ctx: ChainContext, node_id: str, pin_id: str) -> None:
        for conn in list(self._outgoing.get((node_id, pin_id), ())):
            if self.is_stale(ctx):
                return
            await self.execute_node(ctx, conn.target.node_id, conn.target.pin_id)

    async def execute_node(self, ctx: ChainContext, node_id: str, trigger_pin: Optional[str] = None) -> None:
        node = self.nodes.get(node_id)
        if node is None:
            return
        definition = get_node_def(node.type)
        behavior = get_behavior(node.type)
        if definition is None or behavior is None:
            return

        category = get_category_info(definition.category)
        logger.debug(
            "execute node",
            node_id=node_id,
            node_type=node.type,
            category=category.id if category else definition.category,
            pin=trigger_pin,
        )
        try:
            await behavior.execute(self, ctx, node)
        except Exception as e:
            self.log(f"Error in node {node.type} ({node_id}): {e}", level="error")

    # --- Data flow (pull) ---

    async def resolve_input(self, ctx: ChainContext, node_id: str, pin_id: str) -> Any:
        conn = self._incoming.get((node_id, pin_id))
        if conn is None:
            return None
        source = self.nodes.get(conn.source.node_id)
        if source is None:
            return None
        return await self.evaluate_node(ctx, source, conn.source.pin_id)

    async def evaluate_node(self, ctx: ChainContext, node: NodeInstance, output_pin: str = "value") -> Any:
        behavior = get_behavior(node.type)
        if behavior is None:
            return None

        key = f"{node.id}:{output_pin}"
        if key in ctx.evaluating:
            self.log(f"Data cycle detected at {node.type} ({node.id})", level="error")
            return None
        ctx.evaluating.add(key)
        try:
            return await behavior.evaluate(self, ctx, node, output_pin)
        except Exception as e:
            self.log(f"Evaluation error in {node.type} ({node.id}): {e}", level="error")
            return None
        finally:
            ctx.evaluating.discard(key)

    # --- Scratch state ---

    def state(self, node_id: str) -> NodeRuntimeState:
        st = self.node_state.get(node_id)
        if st is None:
            st = NodeRuntimeState()
            self.node_state[node_id] = st
        return st

    # --- UI intents ---

    def emit_set_text(self, ctx: ChainContext, target_id: str, text: str) -> None:
        if not self.is_stale(ctx):
            self.callbacks.on_set_text(target_id, text)

    def emit_set_style(self, ctx: ChainContext, target_id: str, prop: str, value: str) -> None:
        if not self.is_stale(ctx):
            self.callbacks.on_set_style(target_id, prop, value)

    def emit_alert(self, ctx: ChainContext, message: str) -> None:
        if self.is_stale(ctx):
            return
        if self.callbacks.on_alert is None:
            logger.warning("Alert", app_id=self.app.id, message=message)
            return
        self.callbacks.on_alert(message)

    def emit_navigate_page(self, ctx: ChainContext, page_id: str) -> None:
        if not self.is_stale(ctx):
            self.callbacks.on_navigate_page(page_id)

    # --- Logging ---

    def log(self, message: str, *, level: str = "info") -> None:
        if level not in _LOG_LEVELS:
            level = "info"
        self.logs.append(LogEntry(time=datetime.now().strftime("%H:%M:%S"), message=message, level=level))
        getattr(logger, level)(message, app_id=self.app.id)
        if self.callbacks.on_log is not None:
            try:
                self.callbacks.on_log(message)
            except Exception:
                logger.exception("on_log callback failed", app_id=self.app.id)

    def get_logs(self) -> List[LogEntry]:
        return list(self.logs)
