"""Runtime-only state kept beside (not inside) the document's nodes.

- NodeRuntimeState: per-node scratch values written by an action and read
  back by the same node's data outputs (last HTTP status, last GPS fix, ...).
- CallFrame / ChainContext: per-chain call stack for user functions, plus the
  run epoch used to discard work that outlives `stop()`.
- RuntimeCallbacks: UI intents pushed out of the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set


@dataclass
class NodeRuntimeState:
    last_result: Any = None
    last_status: Optional[int] = None
    last_lat: Optional[float] = None
    last_lon: Optional[float] = None
    last_level: Optional[int] = None
    last_charging: Optional[bool] = None
    current_index: Optional[Any] = None


@dataclass
class CallFrame:
    function_name: str
    params: Dict[str, Any] = field(default_factory=dict)
    return_value: Any = None


@dataclass
class ChainContext:
    """State of one execution chain (one trigger: start, timer tick, event).

    Each chain owns its call stack, so recursion and concurrent chains calling
    the same function never share parameters or return slots.
    """

    epoch: int
    frames: List[CallFrame] = field(default_factory=list)
    evaluating: Set[str] = field(default_factory=set)

    @property
    def depth(self) -> int:
        return len(self.frames)

    def current_frame(self) -> Optional[CallFrame]:
        return self.frames[-1] if self.frames else None

    def frame_for(self, function_name: str) -> Optional[CallFrame]:
        for frame in reversed(self.frames):
            if frame.function_name == function_name:
                return frame
        return None


@dataclass(frozen=True)
class LogEntry:
    time: str
    message: str
    level: str = "info"


def _noop(*_args: Any) -> None:
    return None


def _empty_input(_target_id: str) -> str:
    return ""


def _no_variable(_name: str) -> Any:
    return None


@dataclass
class RuntimeCallbacks:
    """UI callbacks. Omitted ones fall back to no-ops (alerts/logs go to the logger)."""

    on_set_text: Callable[[str, str], None] = _noop
    on_set_style: Callable[[str, str, str], None] = _noop
    on_alert: Optional[Callable[[str], None]] = None
    on_log: Optional[Callable[[str], None]] = None
    on_get_input_value: Callable[[str], str] = _empty_input
    # Reserved for hosts that expose their own variables; no node reads it yet.
    on_get_variable: Callable[[str], Any] = _no_variable
    on_navigate_page: Callable[[str], None] = _noop
