"""In-process fan-out of notification events to live subscribers."""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Iterable

from loguru import logger

from tokenprism.core.models import NotificationEvent
from tokenprism.core.monitoring import MetricsCollector, get_metrics_collector

_subscription_ids = itertools.count(1)


class Subscription:
    """One subscriber's bounded mailbox and optional address filter."""

    def __init__(self, maxsize: int, addresses: Iterable[str] | None = None) -> None:
        self.id = next(_subscription_ids)
        self.queue: asyncio.Queue[NotificationEvent] = asyncio.Queue(maxsize=maxsize)
        self.addresses: frozenset[str] | None = None
        self.dropped = 0
        self.set_filter(addresses)

    def set_filter(self, addresses: Iterable[str] | None) -> None:
        """Narrow the feed to ``addresses``; ``None`` receives everything."""
        if addresses is None:
            self.addresses = None
        else:
            self.addresses = frozenset(address.strip().lower() for address in addresses)

    def wants(self, event: NotificationEvent) -> bool:
        return self.addresses is None or event.address in self.addresses

    async def get(self) -> NotificationEvent:
        return await self.queue.get()

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> NotificationEvent:
        return await self.queue.get()


class NotificationHub:
    """Best-effort publisher: a slow subscriber loses events, never blocks the writer."""

    def __init__(
        self,
        *,
        queue_size: int = 256,
        enabled: bool = True,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.queue_size = queue_size
        self.enabled = enabled
        self.metrics = metrics or get_metrics_collector()
        self._subscriptions: dict[int, Subscription] = {}

    def subscribe(self, addresses: Iterable[str] | None = None) -> Subscription:
        subscription = Subscription(self.queue_size, addresses)
        self._subscriptions[subscription.id] = subscription
        self.metrics.set_subscribers(len(self._subscriptions))
        logger.debug("Subscriber {} attached", subscription.id)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if self._subscriptions.pop(subscription.id, None) is not None:
            self.metrics.set_subscribers(len(self._subscriptions))
            logger.debug("Subscriber {} detached after {} drops", subscription.id, subscription.dropped)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def publish(self, event: NotificationEvent) -> int:
        """Offer ``event`` to every interested subscriber; returns deliveries."""
        if not self.enabled:
            return 0
        self.metrics.record_notification(event.event)
        delivered = 0
        for subscription in list(self._subscriptions.values()):
            if not subscription.wants(event):
                continue
            try:
                subscription.queue.put_nowait(event)
            except asyncio.QueueFull:
                subscription.dropped += 1
                self.metrics.record_dropped_notification()
                logger.bind(address=event.address).warning(
                    "Subscriber {} queue full, dropped {}", subscription.id, event.event
                )
                continue
            delivered += 1
        return delivered
