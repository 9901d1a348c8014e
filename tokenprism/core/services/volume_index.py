"""Volume-ranked membership of every tracked token."""

from tokenprism.core.data.store import RecordStore

DEFAULT_INDEX_KEY = "tokens:by_volume"


class VolumeIndex:
    """Sorted set of addresses scored by cumulative volume.

    A derived view of the record store: the aggregator is its only writer and
    upserts a member in the same step that persists the merged record.
    """

    def __init__(self, store: RecordStore, key: str = DEFAULT_INDEX_KEY) -> None:
        self.store = store
        self.key = key

    async def upsert(self, address: str, volume: float) -> None:
        await self.store.zadd(self.key, volume, address)

    async def range_descending(self, start: int, stop: int) -> list[str]:
        """Addresses ranked ``start``..``stop`` (inclusive), highest volume first."""
        return await self.store.zrevrange(self.key, start, stop)

    async def size(self) -> int:
        return await self.store.zcard(self.key)
