"""Context, output and error plumbing shared by CLI commands."""

from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn, TextIO

import typer

from tokenprism.core.config import ConfigManager, TokenPrismConfig
from tokenprism.core.exceptions import AggregationError, ConfigurationError, StoreError, TokenPrismError

from .constants import AGGREGATION_EXIT_CODE, STORE_EXIT_CODE, SYSTEM_EXIT_CODE, VALIDATION_EXIT_CODE
from .formatters import OutputFormatter, create_formatter

# most specific first
_EXIT_CODES: tuple[tuple[type[TokenPrismError], int], ...] = (
    (ConfigurationError, VALIDATION_EXIT_CODE),
    (AggregationError, AGGREGATION_EXIT_CODE),
    (StoreError, STORE_EXIT_CODE),
)


@dataclass(slots=True)
class CLIOptions:
    """Global options stored on the Typer context by the app callback."""

    format: str = "table"
    output_path: Path | None = None
    config_path: Path | None = None
    no_color: bool = False

    @classmethod
    def from_context(cls, ctx: typer.Context) -> "CLIOptions":
        data = ctx.ensure_object(dict)
        return cls(
            format=str(data.get("format", "table")),
            output_path=data.get("output_path"),
            config_path=data.get("config_path"),
            no_color=bool(data.get("no_color", False)),
        )

    def formatter(self) -> OutputFormatter:
        return create_formatter(self.format, no_color=self.no_color)


def load_config(ctx: typer.Context) -> TokenPrismConfig:
    """Configuration from ``--config`` (or the default file) plus environment."""

    return ConfigManager(CLIOptions.from_context(ctx).config_path).get_config()


@contextmanager
def command_output(ctx: typer.Context) -> Iterator[tuple[OutputFormatter, TextIO]]:
    """Yield the formatter and the stream selected by ``--format``/``--output``.

    A domain error raised inside the block is reported on stderr and turned
    into its exit code.
    """

    options = CLIOptions.from_context(ctx)
    formatter = options.formatter()
    try:
        if options.output_path is None:
            yield formatter, sys.stdout
            return
        try:
            handle = options.output_path.open("w", encoding="utf-8")
        except OSError as exc:
            emit_error(f"Unable to open '{options.output_path}': {exc}", "OUTPUT_WRITE_ERROR")
            raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc
        with handle:
            yield formatter, handle
    except TokenPrismError as error:
        fail(error)


def exit_code_for(error: TokenPrismError) -> int:
    for error_type, code in _EXIT_CODES:
        if isinstance(error, error_type):
            return code
    return SYSTEM_EXIT_CODE


def fail(error: TokenPrismError) -> NoReturn:
    """Report ``error`` on stderr and exit with its code."""

    emit_error(error.message, error.error_code, details=error.details)
    raise typer.Exit(code=exit_code_for(error)) from error


def emit_error(message: str, code: str, *, details: dict[str, object] | None = None) -> None:
    """Print ``{"code", "message", "details"}`` as one JSON line on stderr."""

    payload: dict[str, object] = {"code": code, "message": message}
    if details:
        payload["details"] = details
    typer.echo(json.dumps(payload, ensure_ascii=False, default=str), err=True)


__all__ = ["CLIOptions", "command_output", "emit_error", "exit_code_for", "fail", "load_config"]
