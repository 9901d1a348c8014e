"""JSON-line sinks and loguru setup."""

from __future__ import annotations

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import IO, Any

from loguru import logger

from tokenprism.core.logging.context import patch_record

# always present on a line, null when unset
PROMOTED_FIELDS = ("trace_id", "source", "address", "error_code")


def _default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def render_line(record: dict[str, Any]) -> str:
    """Flatten a loguru record into one JSON object."""
    extra = record["extra"]
    payload: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "module": record["name"],
    }
    for key in PROMOTED_FIELDS:
        payload[key] = extra.get(key)
    context = {key: value for key, value in extra.items() if key not in PROMOTED_FIELDS}
    if context:
        payload["context"] = context
    if record["exception"] is not None:
        payload["exception"] = repr(record["exception"].value)
    return json.dumps(payload, default=_default)


class JsonLineSink:
    """Writes one JSON object per record to a stream or an append-only file."""

    def __init__(self, target: IO[str] | str | Path) -> None:
        if isinstance(target, (str, Path)):
            path = Path(target)
            path.parent.mkdir(parents=True, exist_ok=True)
            self._path: Path | None = path
            self._stream: IO[str] | None = None
        else:
            self._path = None
            self._stream = target

    def __call__(self, message: Any) -> None:
        line = render_line(message.record) + "\n"
        if self._stream is not None:
            self._stream.write(line)
            self._stream.flush()
            return
        with self._path.open("a", encoding="utf-8") as handle:  # type: ignore[union-attr]
            handle.write(line)


def configure_logging(
    level: str = "INFO",
    *,
    stream: IO[str] | None = None,
    file: str | Path | None = None,
) -> None:
    """Replace every loguru handler with JSON-line sinks.

    Records go to ``stream`` (stderr by default) and, when ``file`` is set,
    are appended to that file as well.
    """
    level = level.upper()
    handlers: list[dict[str, Any]] = [{"sink": JsonLineSink(stream or sys.stderr), "level": level}]
    if file:
        handlers.append({"sink": JsonLineSink(file), "level": level})
    logger.configure(handlers=handlers, patcher=patch_record)


__all__ = ["JsonLineSink", "PROMOTED_FIELDS", "configure_logging", "render_line"]
