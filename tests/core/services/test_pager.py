"""Tests for cursor pagination."""

from __future__ import annotations

import base64
import json

import pytest

from tokenprism.core.data.repositories import TokenRepository
from tokenprism.core.data.store import InMemoryRecordStore
from tokenprism.core.models import TokenRecord
from tokenprism.core.services.pager import MAX_OFFSET, Pager, decode_cursor, encode_cursor
from tokenprism.core.services.volume_index import VolumeIndex


async def _seed(count: int) -> Pager:
    store = InMemoryRecordStore()
    repository = TokenRepository(store)
    index = VolumeIndex(store)
    for position in range(count):
        address = f"token{position:03d}"
        await repository.save(TokenRecord(address=address, volume=float(position)))
        await index.upsert(address, float(position))
    return Pager(index, repository)


def test_cursor_round_trip() -> None:
    cursor = encode_cursor(40)

    assert json.loads(base64.b64decode(cursor)) == {"offset": 40}
    assert decode_cursor(cursor) == 40


@pytest.mark.parametrize(
    "cursor",
    [
        None,
        "",
        "not base64!!",
        base64.b64encode(b"not json").decode(),
        base64.b64encode(b"[1, 2]").decode(),
        base64.b64encode(b'{"offset": -3}').decode(),
        base64.b64encode(b'{"offset": "7"}').decode(),
        base64.b64encode(b'{"offset": true}').decode(),
        base64.b64encode(b'{"offset": 1000000000000000000000000000000}').decode(),
        base64.b64encode(b'{"offset": 9223372036854775808}').decode(),
    ],
)
def test_unreadable_cursor_restarts_at_zero(cursor: str | None) -> None:
    assert decode_cursor(cursor) == 0


def test_negative_offset_cannot_be_encoded() -> None:
    with pytest.raises(ValueError):
        encode_cursor(-1)


@pytest.mark.asyncio
async def test_full_page_carries_next_cursor() -> None:
    pager = await _seed(25)

    page = await pager.page(20)

    assert page.count == 25
    assert len(page.records) == 20
    assert page.records[0].address == "token024"
    assert decode_cursor(page.next_cursor) == 20


@pytest.mark.asyncio
async def test_short_last_page_has_no_cursor() -> None:
    pager = await _seed(25)

    page = await pager.page(20, encode_cursor(20))

    assert [record.address for record in page.records] == [f"token{n:03d}" for n in range(4, -1, -1)]
    assert page.next_cursor is None


@pytest.mark.asyncio
async def test_fewer_members_than_limit_has_no_cursor() -> None:
    pager = await _seed(7)

    page = await pager.page(20)

    assert len(page.records) == 7
    assert page.next_cursor is None
    assert page.count == 7


@pytest.mark.asyncio
async def test_garbage_cursor_serves_first_page() -> None:
    pager = await _seed(3)

    page = await pager.page(2, "%%%garbage")

    assert [record.address for record in page.records] == ["token002", "token001"]


@pytest.mark.asyncio
async def test_non_positive_limit_returns_empty_page_with_count() -> None:
    pager = await _seed(3)

    page = await pager.page(0)

    assert page.records == []
    assert page.next_cursor is None
    assert page.count == 3


@pytest.mark.asyncio
async def test_missing_records_are_omitted() -> None:
    store = InMemoryRecordStore()
    repository = TokenRepository(store)
    index = VolumeIndex(store)
    await repository.save(TokenRecord(address="kept", volume=2.0))
    await index.upsert("kept", 2.0)
    await index.upsert("expired", 1.0)

    page = await Pager(index, repository).page(2)

    assert [record.address for record in page.records] == ["kept"]
    # the rank query filled the page, so a next page may exist
    assert page.next_cursor == encode_cursor(2)


def test_largest_redis_rank_is_still_a_valid_cursor() -> None:
    assert decode_cursor(encode_cursor(MAX_OFFSET)) == MAX_OFFSET


@pytest.mark.asyncio
async def test_cursor_at_the_last_rank_returns_empty_page() -> None:
    pager = await _seed(3)

    page = await pager.page(10, encode_cursor(MAX_OFFSET))

    assert (page.records, page.next_cursor, page.count) == ([], None, 3)
