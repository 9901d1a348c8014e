"""Token record repository on top of a :class:`RecordStore`."""

import asyncio
from collections.abc import Sequence

from loguru import logger
from pydantic import ValidationError

from tokenprism.core.data.store import RecordStore
from tokenprism.core.models import TokenRecord


class TokenRepository:
    """Persists canonical token records as JSON under ``<prefix><address>``."""

    def __init__(self, store: RecordStore, *, key_prefix: str = "token:", ttl_seconds: int | None = None):
        self.store = store
        self.key_prefix = key_prefix
        self.ttl_seconds = ttl_seconds

    def key_for(self, address: str) -> str:
        return f"{self.key_prefix}{address}"

    async def get(self, address: str) -> TokenRecord | None:
        """Load a record; an undecodable payload counts as a miss."""
        raw = await self.store.get(self.key_for(address))
        if raw is None:
            return None
        try:
            return TokenRecord.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding unreadable record for {}: {}", address, exc.error_count())
            return None

    async def get_many(self, addresses: Sequence[str]) -> list[TokenRecord]:
        """Batch lookup preserving order; missing records are left out."""
        records = await asyncio.gather(*(self.get(address) for address in addresses))
        return [record for record in records if record is not None]

    async def save(self, record: TokenRecord) -> None:
        await self.store.set(self.key_for(record.address), record.model_dump_json().encode("utf-8"), self.ttl_seconds)
