"""Commands that run the aggregation service."""

from __future__ import annotations

import asyncio

import typer

from tokenprism.core.config import TokenPrismConfig
from tokenprism.core.data.providers import SourceNormalizer
from tokenprism.core.data.repositories import TokenRepository
from tokenprism.core.data.store import RecordStore, create_record_store
from tokenprism.core.exceptions import ConfigurationError
from tokenprism.core.notifications import NotificationHub
from tokenprism.core.services import (
    CycleReport,
    SignificanceDetector,
    SignificanceThresholds,
    TokenAggregator,
    VolumeIndex,
)
from tokenprism.web.main import run as run_server

from .utils import command_output, fail, load_config


def register(app: typer.Typer) -> None:
    """Register the service commands on the provided application."""

    app.command("serve")(serve_command)
    app.command("poll-once")(poll_once_command)


def get_record_store(config: TokenPrismConfig) -> RecordStore:
    """Factory hook for the record store used by one-shot commands."""

    return create_record_store(config.store.url)


def get_normalizer(config: TokenPrismConfig) -> SourceNormalizer:
    """Factory hook for the upstream collector."""

    return SourceNormalizer.from_config(config)


def build_aggregator(config: TokenPrismConfig, store: RecordStore, normalizer: SourceNormalizer) -> TokenAggregator:
    repository = TokenRepository(
        store,
        key_prefix=config.store.record_key_prefix,
        ttl_seconds=config.store.record_ttl_seconds,
    )
    return TokenAggregator(
        repository,
        VolumeIndex(store, config.store.volume_index_key),
        normalizer,
        # nobody subscribes during a one-shot cycle
        NotificationHub(enabled=False),
        config=config.aggregator,
        detector=SignificanceDetector(SignificanceThresholds.from_config(config.significance)),
    )


async def _poll_once(config: TokenPrismConfig) -> CycleReport:
    store = get_record_store(config)
    normalizer = get_normalizer(config)
    try:
        return await build_aggregator(config, store, normalizer).poll_once()
    finally:
        await normalizer.aclose()
        await store.close()


def serve_command(
    ctx: typer.Context,
    host: str | None = typer.Option(None, "--host", help="Bind address, defaults to the configured host."),
    port: int | None = typer.Option(None, "--port", help="Bind port, defaults to the configured port."),
) -> None:
    """Run the HTTP and WebSocket service with the polling loop."""

    try:
        config = load_config(ctx)
    except ConfigurationError as error:
        fail(error)
    run_server(config, host=host, port=port)


def poll_once_command(ctx: typer.Context) -> None:
    """Run a single aggregation cycle and print its report."""

    with command_output(ctx) as (formatter, stream):
        report = asyncio.run(_poll_once(load_config(ctx)))
        formatter.render_report(report, stream=stream)
