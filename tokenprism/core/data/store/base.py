"""Record store interface consumed by the aggregation core."""

from abc import ABC, abstractmethod


class RecordStore(ABC):
    """Key/value store with TTL plus volume-scored sorted sets.

    Implementations must be safe to call concurrently from the polling loop and
    from request handlers. No isolation is promised between separate calls.
    """

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the stored value, or ``None`` when missing or expired."""
        pass

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        """Store ``value``; ``ttl`` in seconds, ``None`` for no expiry."""
        pass

    @abstractmethod
    async def zadd(self, set_key: str, score: float, member: str) -> None:
        """Set the score of ``member`` in ``set_key``, replacing any prior score."""
        pass

    @abstractmethod
    async def zrevrange(self, set_key: str, start: int, stop: int) -> list[str]:
        """Members by descending score between inclusive ranks ``start`` and ``stop``."""
        pass

    @abstractmethod
    async def zcard(self, set_key: str) -> int:
        """Number of members in ``set_key``."""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Health probe."""
        pass

    async def close(self) -> None:
        """Release connections."""
        return None
