"""
Contextual logging utilities for MDB_ADAPTER.

Attaches the storage operation in progress (collection, action) to log
records through a context variable, so concurrent operations log
independently.
"""

import contextvars
import logging
from typing import Any

_operation_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "operation_context", default=None
)


def set_operation_context(
    collection: str | None = None, action: str | None = None, **kwargs: Any
) -> contextvars.Token:
    """
    Set the storage operation context for logging.

    Args:
        collection: Collection name
        action: Action being performed (insert, find, ...)
        **kwargs: Additional context

    Returns:
        Token that restores the previous context when passed to
        reset_operation_context
    """
    context = {"collection": collection, "action": action, **kwargs}
    return _operation_context.set({k: v for k, v in context.items() if v is not None})


def reset_operation_context(token: contextvars.Token) -> None:
    """Restore the operation context that was active before set_operation_context."""
    _operation_context.reset(token)


def get_logging_context() -> dict[str, Any]:
    """Return a copy of the current operation context."""
    return dict(_operation_context.get() or {})


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that adds the operation context to log records.

    Explicit ``extra`` values win over context values with the same key.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        context = get_logging_context()
        context.update(kwargs.get("extra") or {})
        kwargs["extra"] = context
        return msg, kwargs


def get_logger(name: str) -> ContextualLoggerAdapter:
    """Get a contextual logger for a module (typically ``__name__``)."""
    return ContextualLoggerAdapter(logging.getLogger(name), {})
