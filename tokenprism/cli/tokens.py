"""Read-side commands over the volume index."""

from __future__ import annotations

import asyncio

import typer

from tokenprism.core.config import TokenPrismConfig
from tokenprism.core.data.repositories import TokenRepository
from tokenprism.core.models import PageResult
from tokenprism.core.services import Pager, VolumeIndex

from . import service
from .utils import command_output, load_config


def register(app: typer.Typer) -> None:
    """Register the token listing command."""

    app.command("tokens")(tokens_command)


async def _fetch_page(config: TokenPrismConfig, limit: int | None, cursor: str | None) -> PageResult:
    store = service.get_record_store(config)
    try:
        repository = TokenRepository(store, key_prefix=config.store.record_key_prefix)
        pager = Pager(VolumeIndex(store, config.store.volume_index_key), repository)
        size = min(limit or config.server.default_page_size, config.server.max_page_size)
        return await pager.page(size, cursor)
    finally:
        await store.close()


def tokens_command(
    ctx: typer.Context,
    limit: int | None = typer.Option(
        None, "--limit", min=1, max=100, help="Page size, defaults to server.default_page_size."
    ),
    cursor: str | None = typer.Option(None, "--cursor", help="Cursor printed by a previous call."),
) -> None:
    """Print one page of tracked tokens, highest volume first."""

    with command_output(ctx) as (formatter, stream):
        page = asyncio.run(_fetch_page(load_config(ctx), limit, cursor))
        formatter.render_page(page, stream=stream)
