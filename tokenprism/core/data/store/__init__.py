"""Record store implementations."""

from tokenprism.core.exceptions import ConfigurationError

from .base import RecordStore
from .memory import InMemoryRecordStore
from .redis_store import RedisRecordStore


def create_record_store(url: str) -> RecordStore:
    """Pick a store implementation from its URL scheme."""

    if url.startswith("memory://"):
        return InMemoryRecordStore()
    if url.startswith(("redis://", "rediss://", "unix://")):
        return RedisRecordStore.from_url(url)
    raise ConfigurationError(f"Unsupported record store URL: {url}", key="store.url")


__all__ = ["RecordStore", "InMemoryRecordStore", "RedisRecordStore", "create_record_store"]
