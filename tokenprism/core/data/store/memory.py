"""Thread-safe in-memory record store with Redis-like sorted sets."""

import time
from threading import Lock

from .base import RecordStore


def _redis_slice(length: int, start: int, stop: int) -> slice | None:
    """Translate inclusive, possibly negative Redis ranks into a Python slice."""
    if start < 0:
        start = max(length + start, 0)
    if stop < 0:
        stop = length + stop
    if start >= length or start > stop or stop < 0:
        return None
    return slice(start, min(stop, length - 1) + 1)


class InMemoryRecordStore(RecordStore):
    """Process-local store used by tests and the ``memory://`` URL."""

    def __init__(self) -> None:
        self._values: dict[str, tuple[bytes, float | None]] = {}
        self._sorted_sets: dict[str, dict[str, float]] = {}
        self._lock = Lock()

    async def get(self, key: str) -> bytes | None:
        with self._lock:
            if key not in self._values:
                return None

            value, expiry = self._values[key]
            if expiry is not None and time.time() > expiry:
                del self._values[key]
                return None
            return value

    async def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        expiry = time.time() + ttl if ttl else None
        with self._lock:
            self._values[key] = (value, expiry)

    async def zadd(self, set_key: str, score: float, member: str) -> None:
        with self._lock:
            self._sorted_sets.setdefault(set_key, {})[member] = float(score)

    async def zrevrange(self, set_key: str, start: int, stop: int) -> list[str]:
        with self._lock:
            members = self._sorted_sets.get(set_key, {})
            # Redis orders equal scores by member, reversed for ZREVRANGE
            ordered = sorted(members.items(), key=lambda item: (item[1], item[0]), reverse=True)
        window = _redis_slice(len(ordered), start, stop)
        if window is None:
            return []
        return [member for member, _ in ordered[window]]

    async def zcard(self, set_key: str) -> int:
        with self._lock:
            return len(self._sorted_sets.get(set_key, {}))

    async def ping(self) -> bool:
        return True

    async def get_ttl(self, key: str) -> int | None:
        """Remaining TTL in seconds, ``None`` if missing or without expiry."""
        with self._lock:
            if key not in self._values:
                return None
            _, expiry = self._values[key]
            if expiry is None:
                return None
            remaining = expiry - time.time()
            if remaining <= 0:
                del self._values[key]
                return None
            return int(remaining)

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)
