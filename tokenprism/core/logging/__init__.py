"""Structured JSON logging with per-cycle trace ids."""

from tokenprism.core.logging.context import current_trace_id, log_context
from tokenprism.core.logging.sinks import JsonLineSink, configure_logging

__all__ = [
    "JsonLineSink",
    "configure_logging",
    "current_trace_id",
    "log_context",
]
