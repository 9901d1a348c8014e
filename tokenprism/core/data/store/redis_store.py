"""Redis-backed record store."""

from __future__ import annotations

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from tokenprism.core.exceptions import StoreError

from .base import RecordStore


class RedisRecordStore(RecordStore):
    """Adapter over ``redis.asyncio``; every Redis failure surfaces as :class:`StoreError`."""

    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisRecordStore":
        return cls(aioredis.Redis.from_url(url))

    async def get(self, key: str) -> bytes | None:
        try:
            return await self._client.get(key)
        except RedisError as exc:
            raise StoreError(f"Redis GET failed: {exc}", operation="get", key=key) from exc

    async def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        try:
            await self._client.set(key, value, ex=ttl or None)
        except RedisError as exc:
            raise StoreError(f"Redis SET failed: {exc}", operation="set", key=key) from exc

    async def zadd(self, set_key: str, score: float, member: str) -> None:
        try:
            await self._client.zadd(set_key, {member: score})
        except RedisError as exc:
            raise StoreError(f"Redis ZADD failed: {exc}", operation="zadd", key=set_key) from exc

    async def zrevrange(self, set_key: str, start: int, stop: int) -> list[str]:
        try:
            members = await self._client.zrevrange(set_key, start, stop)
        except RedisError as exc:
            raise StoreError(f"Redis ZREVRANGE failed: {exc}", operation="zrevrange", key=set_key) from exc
        return [m.decode("utf-8") if isinstance(m, bytes) else m for m in members]

    async def zcard(self, set_key: str) -> int:
        try:
            return int(await self._client.zcard(set_key))
        except RedisError as exc:
            raise StoreError(f"Redis ZCARD failed: {exc}", operation="zcard", key=set_key) from exc

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as exc:
            raise StoreError(f"Redis PING failed: {exc}", operation="ping") from exc

    async def close(self) -> None:
        await self._client.aclose()
