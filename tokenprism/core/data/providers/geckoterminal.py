"""GeckoTerminal: discovery of the tokens tracked each cycle."""

from __future__ import annotations

from typing import Any

from .base import HttpFetcher, TokenSource


def token_address(entry: dict[str, Any]) -> str:
    """Address of a GeckoTerminal list entry, lower-cased, ``""`` if absent."""
    attributes = entry.get("attributes") or {}
    raw = attributes.get("address") or entry.get("token_address") or entry.get("address") or ""
    return str(raw).strip().lower()


class GeckoTerminalSource(TokenSource):
    name = "geckoterminal"
    base_url = "https://api.geckoterminal.com/api/v2"

    def __init__(self, fetcher: HttpFetcher, *, network: str = "solana", base_url: str | None = None) -> None:
        super().__init__(fetcher, base_url=base_url)
        self.network = network

    async def fetch_top(self, limit: int) -> list[dict[str, Any]]:
        """First ``limit`` token entries that carry an address."""
        payload = await self._get(f"/networks/{self.network}/tokens")
        entries = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            return []
        return [entry for entry in entries if isinstance(entry, dict) and token_address(entry)][:limit]
