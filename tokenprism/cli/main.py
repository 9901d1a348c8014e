"""Main entry point for the tokenprism command line interface."""

from __future__ import annotations

import sys
from pathlib import Path

import typer

from tokenprism.core.logging import configure_logging

from .formatters import create_formatter
from .service import register as register_service_commands
from .tokens import register as register_token_commands


def create_app() -> typer.Typer:
    """Create a Typer application instance for tokenprism."""

    app = typer.Typer(add_completion=False, help="tokenprism command line interface")

    @app.callback()
    def main(
        ctx: typer.Context,
        format: str = typer.Option(
            "table",
            "--format",
            "-f",
            help="Output format (table or jsonl).",
            show_default=True,
        ),
        output: Path | None = typer.Option(
            None,
            "--output",
            "-o",
            help="Write output to a file instead of stdout.",
        ),
        config: Path | None = typer.Option(
            None,
            "--config",
            "-c",
            help="TOML configuration file, defaults to ~/.tokenprism/config.toml.",
        ),
        log_level: str = typer.Option(
            "WARNING",
            "--log-level",
            help="Log level for the JSON log stream on stderr.",
            show_default=True,
        ),
        no_color: bool = typer.Option(
            False,
            "--no-color",
            help="Disable colorized output for table format.",
        ),
    ) -> None:
        ctx.ensure_object(dict)
        normalized_format = format.strip().lower()
        try:
            # Validate formatter eagerly for immediate feedback on invalid options
            create_formatter(normalized_format, no_color=no_color)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--format") from exc

        ctx.obj.update(
            {
                "format": normalized_format,
                "output_path": output,
                "config_path": config,
                "log_level": log_level.upper(),
                "no_color": no_color,
            }
        )
        configure_logging(log_level, stream=sys.stderr)

    register_service_commands(app)
    register_token_commands(app)
    return app


app = create_app()
