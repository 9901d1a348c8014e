"""Renderers for token pages and cycle reports."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, TextIO

from rich.box import SIMPLE
from rich.console import Console
from rich.table import Table

from tokenprism.core.models import PageResult, TokenRecord
from tokenprism.core.services import CycleReport


def _money(value: float | None) -> str:
    if value is None:
        return "-"
    if value >= 1_000_000:
        return f"${value / 1_000_000:,.2f}M"
    if value >= 1_000:
        return f"${value / 1_000:,.1f}K"
    return f"${value:,.6g}"


def _percent(value: float | None) -> str:
    return "-" if value is None else f"{value:+.2f}%"


def _short(address: str) -> str:
    return address if len(address) <= 14 else f"{address[:6]}..{address[-6:]}"


class OutputFormatter:
    """Base class for the CLI output formats."""

    name: str

    def render_page(self, page: PageResult, *, stream: TextIO) -> None:
        raise NotImplementedError

    def render_report(self, report: CycleReport, *, stream: TextIO) -> None:
        raise NotImplementedError


@dataclass(slots=True)
class TableFormatter(OutputFormatter):
    """Rich tables for a terminal."""

    name: str = "table"
    no_color: bool = False

    def _console(self, stream: TextIO) -> Console:
        return Console(file=stream, color_system=None if self.no_color else "auto", no_color=self.no_color)

    def render_page(self, page: PageResult, *, stream: TextIO) -> None:
        console = self._console(stream)
        if not page.records:
            if page.count:
                console.print(f"No tokens past this cursor ({page.count} tracked).")
            else:
                console.print("No tokens tracked yet.")
            return

        table = Table(box=SIMPLE, title=f"{page.count} tokens by volume")
        table.add_column("Token")
        table.add_column("Address", style="" if self.no_color else "dim")
        for column in ("Price", "Volume", "Liquidity", "Mkt cap", "24h"):
            table.add_column(column, justify="right")
        table.add_column("Protocols")
        for record in page.records:
            table.add_row(
                record.ticker or record.name or "?",
                _short(record.address),
                _money(record.price),
                _money(record.volume),
                _money(record.liquidity),
                _money(record.market_cap),
                self._change(record.price_change_24h),
                ", ".join(record.protocols) or "-",
            )
        console.print(table)
        if page.next_cursor:
            console.print(f"Next page: --cursor {page.next_cursor}")
        else:
            console.print("Last page.")

    def _change(self, value: float | None) -> str:
        text = _percent(value)
        if self.no_color or value is None or value == 0:
            return text
        return f"[green]{text}[/green]" if value > 0 else f"[red]{text}[/red]"

    def render_report(self, report: CycleReport, *, stream: TextIO) -> None:
        table = Table(box=SIMPLE, show_header=False, title=f"Cycle {report.trace_id}")
        table.add_column("Field")
        table.add_column("Value", justify="right")
        table.add_row("observed", str(report.observed))
        table.add_row("merged", str(report.merged))
        table.add_row("created", str(report.created))
        table.add_row("events", str(report.published))
        table.add_row("failed", ", ".join(report.failed) or "-")
        table.add_row("duration", f"{report.duration_seconds:.3f}s")
        self._console(stream).print(table)


@dataclass(slots=True)
class JSONLFormatter(OutputFormatter):
    """One JSON object per line, for pipes."""

    name: str = "jsonl"

    def _write(self, stream: TextIO, payload: dict[str, Any]) -> None:
        json.dump(payload, stream, ensure_ascii=False, default=str)
        stream.write("\n")

    def render_page(self, page: PageResult, *, stream: TextIO) -> None:
        """Write each record, then a trailer line holding the cursor."""
        for record in page.records:
            self._write(stream, self.token_row(record))
        self._write(stream, {"nextCursor": page.next_cursor, "count": page.count})
        stream.flush()

    @staticmethod
    def token_row(record: TokenRecord) -> dict[str, Any]:
        return record.model_dump(mode="json", exclude={"sources"})

    def render_report(self, report: CycleReport, *, stream: TextIO) -> None:
        self._write(stream, report.to_dict())
        stream.flush()


def create_formatter(name: str, *, no_color: bool = False) -> OutputFormatter:
    """Instantiate a formatter by name."""

    normalized = name.strip().lower()
    if normalized == "table":
        return TableFormatter(no_color=no_color)
    if normalized == "jsonl":
        return JSONLFormatter()
    msg = f"Unsupported format '{name}'. Available formats: table, jsonl."
    raise ValueError(msg)


__all__ = ["OutputFormatter", "TableFormatter", "JSONLFormatter", "create_formatter"]
