"""Stateless cursor pagination over the volume index."""

from __future__ import annotations

import base64
import binascii
import json

from tokenprism.core.data.repositories import TokenRepository
from tokenprism.core.models import PageResult
from tokenprism.core.services.volume_index import VolumeIndex

# largest rank a Redis sorted-set range accepts
MAX_OFFSET = 2**63 - 1


def encode_cursor(offset: int) -> str:
    """Serialise an offset as base64 JSON ``{"offset": n}``."""
    if offset < 0:
        raise ValueError("cursor offset must be non-negative")
    payload = json.dumps({"offset": int(offset)}, separators=(",", ":"))
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


def decode_cursor(token: str | None) -> int:
    """Recover the offset from a cursor; anything unreadable restarts at 0."""
    if not token:
        return 0
    try:
        raw = base64.b64decode(token.encode("ascii"), validate=True)
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeError, binascii.Error, ValueError):
        return 0
    if not isinstance(payload, dict):
        return 0
    offset = payload.get("offset")
    # bool is an int subclass
    if isinstance(offset, bool) or not isinstance(offset, int) or not 0 <= offset <= MAX_OFFSET:
        return 0
    return offset


class Pager:
    """Turns ``(limit, cursor)`` into a page of records.

    Pages are not a snapshot: the index can move between the rank query and the
    record lookups, so a record may appear on two pages or be skipped.
    """

    def __init__(self, index: VolumeIndex, repository: TokenRepository) -> None:
        self.index = index
        self.repository = repository

    async def page(self, limit: int, cursor: str | None = None) -> PageResult:
        count = await self.index.size()
        if limit <= 0:
            return PageResult(records=[], next_cursor=None, count=count)

        offset = decode_cursor(cursor)
        addresses = await self.index.range_descending(offset, min(offset + limit - 1, MAX_OFFSET))
        records = await self.repository.get_many(addresses)

        next_cursor = None if len(addresses) < limit else encode_cursor(offset + limit)
        return PageResult(records=records, next_cursor=next_cursor, count=count)


__all__ = ["MAX_OFFSET", "Pager", "decode_cursor", "encode_cursor"]
