"""Combines the upstream sources into one observation per address per cycle."""

from __future__ import annotations

import math
from typing import Any

from loguru import logger
from pydantic import ValidationError

from tokenprism.core.config import TokenPrismConfig
from tokenprism.core.exceptions import ProviderError
from tokenprism.core.models import NormalizedObservation
from tokenprism.core.monitoring import MetricsCollector, get_metrics_collector

from .base import HttpFetcher
from .dexscreener import DexScreenerSource
from .geckoterminal import GeckoTerminalSource, token_address
from .jupiter import JupiterSource


def _number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def first_positive(*values: Any) -> float | None:
    """First value that parses as a finite number greater than zero."""
    for value in values:
        number = _number(value)
        if number is not None and number > 0:
            return number
    return None


def first_defined(*values: Any) -> float | None:
    """First value that parses as a finite number, zero and negatives included."""
    for value in values:
        number = _number(value)
        if number is not None:
            return number
    return None


def _window(container: Any, key: str) -> Any:
    return container.get(key) if isinstance(container, dict) else None


def _transaction_count(pair: dict[str, Any]) -> int | None:
    window = _window(pair.get("txns"), "h24")
    if not isinstance(window, dict):
        return None
    buys = first_defined(window.get("buys")) or 0
    sells = first_defined(window.get("sells")) or 0
    total = int(buys + sells)
    return total if total > 0 else None


def build_observation(
    entry: dict[str, Any],
    pair: dict[str, Any] | None = None,
    quote: dict[str, Any] | None = None,
) -> NormalizedObservation:
    """Map one GeckoTerminal entry plus its DexScreener pair and Jupiter quote.

    Precedence: price Jupiter > DexScreener > GeckoTerminal; volume and liquidity
    DexScreener > GeckoTerminal; market cap GeckoTerminal > DexScreener fdv.
    """
    attributes = entry.get("attributes") or {}
    pair = pair or {}
    quote = quote or {}
    base_token = pair.get("baseToken") or {}

    protocol = pair.get("dexId") or pair.get("dex") or attributes.get("protocol") or "unknown"
    sources: dict[str, Any] = {"geckoterminal": entry}
    if pair:
        sources["dexscreener"] = pair
    if quote:
        sources["jupiter"] = quote

    return NormalizedObservation(
        address=token_address(entry),
        name=attributes.get("name") or base_token.get("name") or entry.get("name") or None,
        ticker=attributes.get("symbol") or base_token.get("symbol") or entry.get("symbol") or None,
        price=first_positive(quote.get("price"), pair.get("priceUsd"), attributes.get("price_usd")),
        market_cap=first_positive(attributes.get("market_cap_usd"), attributes.get("fdv_usd"), pair.get("fdv")),
        volume=first_positive(
            _window(pair.get("volume"), "h24"),
            pair.get("volumeUsd"),
            _window(attributes.get("volume_usd"), "h24"),
            attributes.get("volume_usd_24h"),
        ),
        liquidity=first_positive(
            _window(pair.get("liquidity"), "usd"),
            pair.get("liquidityUsd"),
            attributes.get("total_reserve_in_usd"),
            attributes.get("liquidity_usd"),
        ),
        transaction_count=_transaction_count(pair),
        price_change_1h=first_defined(
            attributes.get("price_change_percentage_1h"), _window(pair.get("priceChange"), "h1")
        ),
        price_change_24h=first_defined(
            attributes.get("price_change_percentage_24h"), _window(pair.get("priceChange"), "h24")
        ),
        protocols=[str(protocol)],
        sources=sources,
    )


class SourceNormalizer:
    """Runs one fetch-and-normalise pass across all sources.

    GeckoTerminal decides which addresses are tracked, so its failure yields an
    empty batch. DexScreener and Jupiter failures only remove their fields.
    """

    def __init__(
        self,
        gecko: GeckoTerminalSource,
        dexscreener: DexScreenerSource,
        jupiter: JupiterSource,
        *,
        top_tokens: int = 30,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.gecko = gecko
        self.dexscreener = dexscreener
        self.jupiter = jupiter
        self.top_tokens = top_tokens
        self.metrics = metrics or get_metrics_collector()

    @classmethod
    def from_config(cls, config: TokenPrismConfig, fetcher: HttpFetcher | None = None) -> "SourceNormalizer":
        fetcher = fetcher or HttpFetcher.from_config(config.providers)
        return cls(
            GeckoTerminalSource(fetcher),
            DexScreenerSource(fetcher, rate_limit_per_min=config.aggregator.dexscreener_rate_limit_per_min),
            JupiterSource(fetcher),
            top_tokens=config.aggregator.top_tokens,
        )

    async def collect(self) -> list[NormalizedObservation]:
        try:
            entries = await self.gecko.fetch_top(self.top_tokens)
        except ProviderError as exc:
            self._source_failed(self.gecko.name, exc)
            return []

        addresses = [token_address(entry) for entry in entries]

        try:
            pairs = await self.dexscreener.fetch_pairs(addresses)
        except ProviderError as exc:
            self._source_failed(self.dexscreener.name, exc)
            pairs = {}

        try:
            quotes = await self.jupiter.fetch_prices(addresses)
        except ProviderError as exc:
            self._source_failed(self.jupiter.name, exc)
            quotes = {}

        observations: list[NormalizedObservation] = []
        for entry, address in zip(entries, addresses):
            try:
                observations.append(build_observation(entry, pairs.get(address), quotes.get(address)))
            except ValidationError as exc:
                logger.bind(address=address).warning("Skipping malformed entry: {}", exc.error_count())
        logger.info("Normalized {} observations from {} listed tokens", len(observations), len(entries))
        return observations

    def _source_failed(self, source: str, exc: ProviderError) -> None:
        self.metrics.increment_source_failure(source)
        logger.bind(source=source, error_code=exc.error_code).warning("Source skipped this cycle: {}", exc.message)

    async def aclose(self) -> None:
        await self.gecko.fetcher.aclose()
