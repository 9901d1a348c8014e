"""Tests for the aggregation service."""

from __future__ import annotations

import asyncio

import pytest

from tokenprism.core.config import AggregatorConfig
from tokenprism.core.data.repositories import TokenRepository
from tokenprism.core.data.store import InMemoryRecordStore
from tokenprism.core.exceptions import AggregationError, StoreError
from tokenprism.core.models import NormalizedObservation, TokenUpdateEvent, VolumeSpikeEvent
from tokenprism.core.monitoring import MetricsCollector
from tokenprism.core.notifications import NotificationHub
from tokenprism.core.services.aggregator import TokenAggregator
from tokenprism.core.services.volume_index import VolumeIndex


class StubNormalizer:
    def __init__(self, *batches: list[NormalizedObservation] | Exception) -> None:
        self.batches = list(batches)
        self.calls = 0
        self.called = asyncio.Event()

    async def collect(self) -> list[NormalizedObservation]:
        self.calls += 1
        self.called.set()
        batch = self.batches[min(self.calls, len(self.batches)) - 1] if self.batches else []
        if isinstance(batch, Exception):
            raise batch
        return batch

    async def aclose(self) -> None:
        return None


class YieldingStore(InMemoryRecordStore):
    """Yields to the event loop around every read and write."""

    async def get(self, key: str) -> bytes | None:
        await asyncio.sleep(0)
        return await super().get(key)

    async def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        await asyncio.sleep(0)
        await super().set(key, value, ttl)


class FailingWriteStore(InMemoryRecordStore):
    def __init__(self, failing_key: str) -> None:
        super().__init__()
        self.failing_key = failing_key

    async def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        if key == self.failing_key:
            raise StoreError("write refused", operation="set", key=key)
        await super().set(key, value, ttl)


def _observation(address: str, **values: object) -> NormalizedObservation:
    return NormalizedObservation(address=address, **values)


def _aggregator(store: InMemoryRecordStore, normalizer: StubNormalizer, **config: object) -> TokenAggregator:
    return TokenAggregator(
        TokenRepository(store),
        VolumeIndex(store),
        normalizer,
        NotificationHub(queue_size=32),
        config=AggregatorConfig(**config),
    )


def _drain(queue: asyncio.Queue) -> list[object]:
    events = []
    while not queue.empty():
        events.append(queue.get_nowait())
    return events


@pytest.mark.asyncio
async def test_poll_once_merges_indexes_and_publishes() -> None:
    store = InMemoryRecordStore()
    normalizer = StubNormalizer(
        [_observation("a", price=1.0, volume=5.0), _observation("b", price=2.0, volume=9.0)]
    )
    aggregator = _aggregator(store, normalizer)
    subscription = aggregator.hub.subscribe()

    report = await aggregator.poll_once()

    assert report.observed == 2
    assert report.merged == 2
    assert report.created == 2
    assert report.failed == []
    assert await aggregator.index.range_descending(0, -1) == ["b", "a"]
    record = await aggregator.repository.get("a")
    assert record is not None and record.volume == 5.0
    events = _drain(subscription.queue)
    assert {event.address for event in events} == {"a", "b"}
    assert all(isinstance(event, TokenUpdateEvent) for event in events)


@pytest.mark.asyncio
async def test_second_cycle_spike_publishes_both_events() -> None:
    store = InMemoryRecordStore()
    normalizer = StubNormalizer([_observation("a", volume=10.0)], [_observation("a", volume=30.0)])
    aggregator = _aggregator(store, normalizer)
    await aggregator.poll_once()
    subscription = aggregator.hub.subscribe()

    report = await aggregator.poll_once()

    events = _drain(subscription.queue)
    assert report.created == 0
    assert [type(event) for event in events] == [TokenUpdateEvent, VolumeSpikeEvent]
    assert events[1].delta == 30.0
    assert await store.zrevrange("tokens:by_volume", 0, 0) == ["a"]


@pytest.mark.asyncio
async def test_insignificant_merge_publishes_nothing() -> None:
    aggregator = _aggregator(InMemoryRecordStore(), StubNormalizer())
    await aggregator.process(_observation("a", price=100.0, volume=10.0))
    subscription = aggregator.hub.subscribe()

    outcome = await aggregator.process(_observation("a", price=100.0, volume=0.1))

    assert outcome.events == []
    assert subscription.queue.empty()


@pytest.mark.asyncio
async def test_same_address_merges_are_serialised() -> None:
    store = YieldingStore()
    batch = [_observation("a", volume=1.0, transaction_count=1) for _ in range(10)]
    aggregator = _aggregator(store, StubNormalizer(batch), max_concurrency=8)

    await aggregator.poll_once()

    record = await aggregator.repository.get("a")
    assert record is not None
    assert record.volume == 10.0
    assert record.transaction_count == 10


@pytest.mark.asyncio
async def test_direct_process_calls_serialise_with_a_running_cycle() -> None:
    store = YieldingStore()
    batch = [_observation("a", volume=1.0, transaction_count=1) for _ in range(5)]
    aggregator = _aggregator(store, StubNormalizer(batch), max_concurrency=8)
    direct = [aggregator.process(_observation("a", volume=1.0, transaction_count=1)) for _ in range(5)]

    await asyncio.gather(aggregator.poll_once(), *direct)
    await aggregator.process(_observation("a", volume=1.0, transaction_count=1))

    record = await aggregator.repository.get("a")
    assert record is not None
    assert (record.volume, record.transaction_count) == (11.0, 11)
    assert aggregator._locks == {}


@pytest.mark.asyncio
async def test_failed_write_publishes_nothing_and_fails_cycle(metrics: MetricsCollector) -> None:
    store = FailingWriteStore("token:bad")
    normalizer = StubNormalizer([_observation("bad", volume=1.0), _observation("good", volume=2.0)])
    aggregator = _aggregator(store, normalizer)
    subscription = aggregator.hub.subscribe()

    with pytest.raises(AggregationError) as exc_info:
        await aggregator.poll_once()

    assert exc_info.value.failed_addresses == ["bad"]
    assert exc_info.value.details["report"]["merged"] == 1
    assert await aggregator.repository.get("good") is not None
    assert await aggregator.index.range_descending(0, -1) == ["good"]
    assert [event.address for event in _drain(subscription.queue)] == ["good"]
    assert metrics.registry.get_sample_value("tokenprism_merges_total", {"outcome": "failed"}) == 1.0
    assert metrics.registry.get_sample_value("tokenprism_merges_total", {"outcome": "ok"}) == 1.0


@pytest.mark.asyncio
async def test_cycle_records_metrics(metrics: MetricsCollector) -> None:
    aggregator = _aggregator(InMemoryRecordStore(), StubNormalizer([_observation("a", volume=1.0)]))

    await aggregator.poll_once()

    assert metrics.registry.get_sample_value("tokenprism_cycle_duration_seconds_count") == 1.0
    assert metrics.registry.get_sample_value("tokenprism_tracked_tokens") == 1.0
    assert metrics.registry.get_sample_value("tokenprism_notifications_total", {"event": "token_update"}) == 1.0


@pytest.mark.asyncio
async def test_loop_runs_until_stopped() -> None:
    normalizer = StubNormalizer([_observation("a", volume=1.0)])
    aggregator = _aggregator(InMemoryRecordStore(), normalizer, poll_interval_seconds=0.01)

    aggregator.start()
    assert aggregator.running
    await asyncio.wait_for(normalizer.called.wait(), timeout=1.0)
    await aggregator.stop()

    assert not aggregator.running
    calls = normalizer.calls
    await asyncio.sleep(0.05)
    assert normalizer.calls == calls
    assert aggregator.last_report is not None


@pytest.mark.asyncio
async def test_loop_survives_failed_cycle() -> None:
    normalizer = StubNormalizer(StoreError("redis down"), [_observation("a", volume=1.0)])
    aggregator = _aggregator(InMemoryRecordStore(), normalizer, poll_interval_seconds=0.01)

    aggregator.start()
    for _ in range(100):
        if normalizer.calls >= 2:
            break
        await asyncio.sleep(0.01)
    await aggregator.stop()

    assert normalizer.calls >= 2
    assert await aggregator.repository.get("a") is not None
