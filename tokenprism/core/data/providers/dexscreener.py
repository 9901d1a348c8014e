"""DexScreener: per-token pair details (price, volume, liquidity, venue)."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from loguru import logger

from tokenprism.core.exceptions import ProviderError

from .base import HttpFetcher, TokenSource


def pair_base_address(pair: dict[str, Any]) -> str:
    base = pair.get("baseToken") or {}
    return str(base.get("address") or pair.get("tokenAddress") or "").strip().lower()


class DexScreenerSource(TokenSource):
    name = "dexscreener"
    base_url = "https://api.dexscreener.com/latest/dex"

    def __init__(
        self,
        fetcher: HttpFetcher,
        *,
        rate_limit_per_min: int = 300,
        base_url: str | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        super().__init__(fetcher, base_url=base_url)
        self.request_interval = 60.0 / rate_limit_per_min if rate_limit_per_min > 0 else 0.0
        self._sleep = sleep

    async def fetch_pairs(self, addresses: Sequence[str]) -> dict[str, dict[str, Any]]:
        """First matching pair per address; requests are paced under the rate limit."""
        pairs: dict[str, dict[str, Any]] = {}
        for position, address in enumerate(addresses):
            if position and self.request_interval:
                await self._sleep(self.request_interval)
            try:
                payload = await self._get(f"/tokens/{address}")
            except ProviderError as exc:
                logger.bind(source=self.name, address=address).warning("DexScreener lookup failed: {}", exc.message)
                continue
            if not isinstance(payload, dict):
                continue
            for pair in payload.get("pairs") or []:
                if isinstance(pair, dict) and pair_base_address(pair) == address:
                    pairs.setdefault(address, pair)
        return pairs
