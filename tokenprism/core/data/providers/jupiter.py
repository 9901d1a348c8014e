"""Jupiter: batch spot prices."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .base import TokenSource


class JupiterSource(TokenSource):
    name = "jupiter"
    base_url = "https://price.jup.ag/v4"

    async def fetch_prices(self, addresses: Sequence[str]) -> dict[str, dict[str, Any]]:
        """Price entries keyed by lower-cased address."""
        if not addresses:
            return {}
        payload = await self._get("/price", params={"ids": ",".join(addresses)})
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            return {}
        return {str(key).lower(): value for key, value in data.items() if isinstance(value, dict)}
