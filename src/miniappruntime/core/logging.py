"""miniappruntime.core.logging

Structured logger used across the package.

`get_logger(__name__)` returns a thin adapter over stdlib `logging` that
accepts keyword context, so call sites read:

    logger.error("node failed", node_id=node.id, error=str(e))

Context is rendered as `key=value` pairs after the message and also attached
to the record as `context` for handlers that want it.
"""

from __future__ import annotations

import logging
from typing import Any, Dict


ROOT_LOGGER_NAME = "miniappruntime"


def _render(message: str, context: Dict[str, Any]) -> str:
    if not context:
        return message
    parts = " ".join(f"{k}={v!r}" for k, v in context.items())
    return f"{message} | {parts}"


class StructuredLogger:
    def __init__(self, logger: logging.Logger):
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, message: str, context: Dict[str, Any]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        exc_info = context.pop("exc_info", None)
        self._logger.log(level, _render(message, context), exc_info=exc_info, extra={"context": dict(context)})

    def debug(self, message: str, **context: Any) -> None:
        self._log(logging.DEBUG, message, context)

    def info(self, message: str, **context: Any) -> None:
        self._log(logging.INFO, message, context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(logging.WARNING, message, context)

    def error(self, message: str, **context: Any) -> None:
        self._log(logging.ERROR, message, context)

    def exception(self, message: str, **context: Any) -> None:
        context.setdefault("exc_info", True)
        self._log(logging.ERROR, message, context)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger under the package root logger."""
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return StructuredLogger(logging.getLogger(name))


def configure_logging(level: int | str = logging.INFO) -> None:
    """Attach a stream handler to the package root logger (CLI use)."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s - %(message)s", "%Y-%m-%d %H:%M:%S")
        )
        root.addHandler(handler)
