"""Trace id and context propagation for log records."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator
from uuid import uuid4

_TRACE_ID: ContextVar[str | None] = ContextVar("tokenprism_trace_id", default=None)
_CONTEXT: ContextVar[dict[str, Any]] = ContextVar("tokenprism_log_context", default={})


def current_trace_id() -> str:
    """Return the active trace id, starting a new one outside any cycle."""
    trace_id = _TRACE_ID.get()
    if trace_id is None:
        trace_id = uuid4().hex
        _TRACE_ID.set(trace_id)
    return trace_id


@contextmanager
def log_context(*, trace_id: str | None = None, **fields: Any) -> Iterator[str]:
    """Scope a trace id and extra fields over every record logged inside.

    Nested scopes inherit the outer fields and restore them on exit. Each
    poll cycle opens one of these, so its records share a trace id.
    """
    active = trace_id or uuid4().hex
    trace_token = _TRACE_ID.set(active)
    context_token = _CONTEXT.set({**_CONTEXT.get(), **fields})
    try:
        yield active
    finally:
        _CONTEXT.reset(context_token)
        _TRACE_ID.reset(trace_token)


def patch_record(record: dict[str, Any]) -> None:
    """loguru patcher: fill in the trace id and scoped fields.

    Fields bound directly on the logger win over scoped ones.
    """
    extra = record["extra"]
    extra.setdefault("trace_id", current_trace_id())
    for key, value in _CONTEXT.get().items():
        extra.setdefault(key, value)


__all__ = ["current_trace_id", "log_context", "patch_record"]
