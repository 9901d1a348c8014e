"""FastAPI application factory and wiring."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from tokenprism.core.config import ConfigManager, TokenPrismConfig
from tokenprism.core.data.providers import SourceNormalizer
from tokenprism.core.data.repositories import TokenRepository
from tokenprism.core.data.store import RecordStore, create_record_store
from tokenprism.core.exceptions import ErrorCode, ProviderError, StoreError, TokenPrismError
from tokenprism.core.notifications import NotificationHub
from tokenprism.core.services import Pager, SignificanceDetector, SignificanceThresholds, TokenAggregator, VolumeIndex
from tokenprism.web.models import ErrorResponse
from tokenprism.web.routes import health_router, metrics_router, tokens_router, ws_router
from tokenprism.web.utils import get_request_id


def create_app(
    config: TokenPrismConfig | None = None,
    store: RecordStore | None = None,
    normalizer: SourceNormalizer | None = None,
    start_aggregator: bool = True,
) -> FastAPI:
    """Build the service.

    Args:
        config: defaults to ``ConfigManager().get_config()``
        store: record store, defaults to one built from ``config.store.url``
        normalizer: upstream collector, defaults to the public HTTP sources
        start_aggregator: run the polling loop for the app's lifetime
    """
    config = config or ConfigManager().get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        record_store = store or create_record_store(config.store.url)
        collector = normalizer or SourceNormalizer.from_config(config)
        repository = TokenRepository(
            record_store,
            key_prefix=config.store.record_key_prefix,
            ttl_seconds=config.store.record_ttl_seconds,
        )
        index = VolumeIndex(record_store, config.store.volume_index_key)
        hub = NotificationHub(queue_size=config.server.subscriber_queue_size, enabled=config.server.enable_websockets)
        aggregator = TokenAggregator(
            repository,
            index,
            collector,
            hub,
            config=config.aggregator,
            detector=SignificanceDetector(SignificanceThresholds.from_config(config.significance)),
        )

        app.state.config = config
        app.state.store = record_store
        app.state.repository = repository
        app.state.index = index
        app.state.pager = Pager(index, repository)
        app.state.hub = hub
        app.state.aggregator = aggregator

        if start_aggregator:
            aggregator.start()
        try:
            yield
        finally:
            await aggregator.stop()
            if normalizer is None:
                await collector.aclose()
            await record_store.close()
            logger.info("tokenprism shut down")

    app = FastAPI(
        title="tokenprism",
        description="Real-time aggregation of token market data across upstream sources",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(tokens_router, tags=["tokens"])
    app.include_router(health_router, tags=["health"])
    app.include_router(metrics_router)
    if config.server.enable_websockets:
        app.include_router(ws_router)

    _setup_exception_handlers(app)
    return app


def _status_for(exc: TokenPrismError) -> int:
    if isinstance(exc, StoreError):
        return 503
    if isinstance(exc, ProviderError):
        return 502
    if exc.error_code == ErrorCode.VALIDATION_ERROR.value:
        return 400
    return 500


def _setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(TokenPrismError)
    async def tokenprism_exception_handler(request: Request, exc: TokenPrismError) -> JSONResponse:
        status_code = _status_for(exc)
        logger.bind(error_code=exc.error_code, path=request.url.path).error(
            "Request failed with {}: {}", status_code, exc.message
        )
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=exc.error_code,
                message=exc.message,
                details=exc.details,
                request_id=get_request_id(request),
            ).model_dump(mode="json"),
        )
