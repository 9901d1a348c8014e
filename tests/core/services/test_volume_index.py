"""Tests for the volume-ranked index."""

from __future__ import annotations

import pytest

from tokenprism.core.data.store import InMemoryRecordStore
from tokenprism.core.services.volume_index import DEFAULT_INDEX_KEY, VolumeIndex


@pytest.mark.asyncio
async def test_range_is_ordered_by_volume_descending() -> None:
    index = VolumeIndex(InMemoryRecordStore())
    await index.upsert("a", 5.0)
    await index.upsert("b", 50.0)
    await index.upsert("c", 20.0)

    assert await index.range_descending(0, -1) == ["b", "c", "a"]
    assert await index.range_descending(1, 1) == ["c"]
    assert await index.size() == 3


@pytest.mark.asyncio
async def test_upsert_moves_existing_member() -> None:
    index = VolumeIndex(InMemoryRecordStore())
    await index.upsert("a", 5.0)
    await index.upsert("b", 10.0)
    await index.upsert("a", 15.0)

    assert await index.range_descending(0, -1) == ["a", "b"]
    assert await index.size() == 2


@pytest.mark.asyncio
async def test_range_past_end_is_empty() -> None:
    index = VolumeIndex(InMemoryRecordStore())
    await index.upsert("a", 1.0)

    assert await index.range_descending(5, 9) == []


@pytest.mark.asyncio
async def test_index_uses_configured_key() -> None:
    store = InMemoryRecordStore()
    await VolumeIndex(store, "custom").upsert("a", 1.0)

    assert await store.zcard("custom") == 1
    assert await store.zcard(DEFAULT_INDEX_KEY) == 0
