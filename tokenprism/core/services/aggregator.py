"""Polling loop that folds upstream observations into canonical records."""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from tokenprism.core.config import AggregatorConfig
from tokenprism.core.data.providers import SourceNormalizer
from tokenprism.core.data.repositories import TokenRepository
from tokenprism.core.exceptions import AggregationError, StoreError, TokenPrismError
from tokenprism.core.logging import log_context
from tokenprism.core.models import NormalizedObservation, NotificationEvent, TokenRecord
from tokenprism.core.monitoring import MetricsCollector, get_metrics_collector
from tokenprism.core.notifications import NotificationHub
from tokenprism.core.services.merge import merge
from tokenprism.core.services.significance import SignificanceDetector
from tokenprism.core.services.volume_index import VolumeIndex


@dataclass(frozen=True)
class MergeOutcome:
    """Result of folding one observation into its record."""

    record: TokenRecord
    created: bool
    events: list[NotificationEvent] = field(default_factory=list)


@dataclass
class CycleReport:
    """Summary of one poll cycle."""

    trace_id: str
    observed: int = 0
    merged: int = 0
    created: int = 0
    published: int = 0
    failed: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "trace_id": self.trace_id,
            "observed": self.observed,
            "merged": self.merged,
            "created": self.created,
            "published": self.published,
            "failed": list(self.failed),
            "duration_seconds": round(self.duration_seconds, 4),
        }


@dataclass
class _AddressLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class TokenAggregator:
    """Merges observations per address and publishes significant changes.

    Writes for one address are serialised by a per-address lock, so two
    observations of the same token never interleave their read-merge-write.
    Different addresses proceed concurrently up to ``max_concurrency``.
    """

    def __init__(
        self,
        repository: TokenRepository,
        index: VolumeIndex,
        normalizer: SourceNormalizer,
        hub: NotificationHub,
        *,
        config: AggregatorConfig | None = None,
        detector: SignificanceDetector | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.repository = repository
        self.index = index
        self.normalizer = normalizer
        self.hub = hub
        self.config = config or AggregatorConfig()
        self.detector = detector or SignificanceDetector()
        self.metrics = metrics or get_metrics_collector()
        self._locks: dict[str, _AddressLock] = {}
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self.last_report: CycleReport | None = None

    @contextlib.asynccontextmanager
    async def _address_lock(self, address: str) -> AsyncIterator[None]:
        """Hold the lock for ``address``; it is dropped once nobody holds or awaits it."""
        entry = self._locks.get(address)
        if entry is None:
            entry = self._locks[address] = _AddressLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[address]

    async def process(self, observation: NormalizedObservation) -> MergeOutcome:
        """Read, merge, persist and index one observation, then publish.

        Events are only published once both the record and its index entry are
        written; a failed write propagates and publishes nothing.
        """
        address = observation.address
        async with self._address_lock(address):
            existing = await self.repository.get(address)
            merged = merge(existing, observation)
            await self.repository.save(merged)
            await self.index.upsert(merged.address, merged.volume)

            events = self.detector.evaluate(existing, merged)
            for event in events:
                self.hub.publish(event)

        return MergeOutcome(record=merged, created=existing is None, events=events)

    async def poll_once(self) -> CycleReport:
        """Run one collect-and-merge cycle.

        Raises:
            AggregationError: at least one merge failed; every other merge in
                the cycle has completed by then.
        """
        with log_context() as trace_id:
            report = CycleReport(trace_id=trace_id)
            started = time.perf_counter()

            observations = await self.normalizer.collect()
            report.observed = len(observations)

            semaphore = asyncio.Semaphore(max(1, self.config.max_concurrency))

            async def guarded(observation: NormalizedObservation) -> MergeOutcome:
                async with semaphore:
                    return await self.process(observation)

            results = await asyncio.gather(*(guarded(obs) for obs in observations), return_exceptions=True)

            for observation, result in zip(observations, results):
                if isinstance(result, MergeOutcome):
                    report.merged += 1
                    report.created += int(result.created)
                    report.published += len(result.events)
                    self.metrics.record_merge(success=True)
                    continue
                if not isinstance(result, Exception):
                    raise result
                report.failed.append(observation.address)
                self.metrics.record_merge(success=False)
                logger.bind(address=observation.address).opt(exception=result).error(
                    "Merge failed: {}", result
                )

            report.duration_seconds = time.perf_counter() - started
            self.metrics.observe_cycle(report.duration_seconds, await self._tracked_count())
            self.last_report = report
            logger.info(
                "Poll cycle finished: {} observed, {} merged, {} failed, {} events",
                report.observed,
                report.merged,
                len(report.failed),
                report.published,
            )

            if report.failed:
                raise AggregationError(
                    f"{len(report.failed)} of {report.observed} merges failed",
                    failed_addresses=report.failed,
                    details={"report": report.to_dict()},
                )
            return report

    async def _tracked_count(self) -> int | None:
        try:
            return await self.index.size()
        except StoreError as exc:
            logger.warning("Could not read index size: {}", exc.message)
            return None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task[None]:
        """Launch the background loop on the running event loop."""
        if self._task is not None and not self._task.done():
            return self._task
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="tokenprism-aggregator")
        logger.info("Aggregator started, polling every {}s", self.config.poll_interval_seconds)
        return self._task

    async def stop(self) -> None:
        """Signal the loop to stop and wait for an in-flight cycle to finish."""
        self._stop_event.set()
        task, self._task = self._task, None
        if task is not None:
            await task
            logger.info("Aggregator stopped")

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self.poll_once()
            except TokenPrismError as exc:
                logger.bind(error_code=exc.error_code).error("Poll cycle failed: {}", exc.message)
            except Exception:
                logger.exception("Poll cycle crashed")
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.config.poll_interval_seconds)


__all__ = ["CycleReport", "MergeOutcome", "TokenAggregator"]
