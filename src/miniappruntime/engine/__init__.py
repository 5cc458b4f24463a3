"""miniappruntime.engine

Async interpreter for mini-app node graphs.
"""

from .behaviors import BEHAVIORS, NodeBehavior, PassThrough, get_behavior, register
from .runtime import STATUS_CONSTRUCTED, STATUS_STARTED, STATUS_STOPPED, MiniAppRuntime
from .state import CallFrame, ChainContext, LogEntry, NodeRuntimeState, RuntimeCallbacks

__all__ = [
    "MiniAppRuntime",
    "STATUS_CONSTRUCTED",
    "STATUS_STARTED",
    "STATUS_STOPPED",
    "RuntimeCallbacks",
    "ChainContext",
    "CallFrame",
    "NodeRuntimeState",
    "LogEntry",
    "NodeBehavior",
    "PassThrough",
    "BEHAVIORS",
    "get_behavior",
    "register",
]
