"""Correlation ids joining the log lines of one unit of work.

The id is kept in a ContextVar so it survives awaits. One eviction sweep
is one unit of work: every per-agent line it emits carries the same id.
"""

from contextvars import ContextVar
from typing import Any
from uuid import uuid4

CORRELATION_ID_KEY = "correlation_id"

_current: ContextVar[str] = ContextVar(CORRELATION_ID_KEY, default="")


def generate_correlation_id(prefix: str = "") -> str:
    """Return a fresh id, ``<prefix>-<hex>`` when a prefix is given."""
    token = uuid4().hex
    return f"{prefix}-{token}" if prefix else token


def get_correlation_id() -> str:
    """Current id, empty when no unit of work has set one."""
    return _current.get()


def set_correlation_id(correlation_id: str) -> None:
    _current.set(correlation_id)


def correlation_id_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor stamping the current id onto each entry.

    An id bound explicitly on the logger wins over the context value.
    """
    current = _current.get()
    if current:
        event_dict.setdefault(CORRELATION_ID_KEY, current)
    return event_dict
