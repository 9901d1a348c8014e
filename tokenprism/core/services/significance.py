"""Decides when a merged record is worth pushing to subscribers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from tokenprism.core.config import SignificanceConfig
from tokenprism.core.models import NotificationEvent, TokenRecord, TokenUpdateEvent, VolumeSpikeEvent
from tokenprism.core.models.token import utcnow


@dataclass(frozen=True)
class SignificanceThresholds:
    """Notification policy constants."""

    price_change_ratio: float = 0.001
    volume_delta: float = 0.5
    spike_ratio: float = 3.0

    @classmethod
    def from_config(cls, config: SignificanceConfig) -> "SignificanceThresholds":
        return cls(
            price_change_ratio=config.price_change_ratio,
            volume_delta=config.volume_delta,
            spike_ratio=config.spike_ratio,
        )


DEFAULT_THRESHOLDS = SignificanceThresholds()


def relative_price_change(existing: TokenRecord, merged: TokenRecord) -> float:
    """Price move relative to the prior price, floored at a denominator of 1."""
    return abs(merged.price - existing.price) / max(existing.price, 1.0)


def is_significant(
    existing: TokenRecord | None,
    merged: TokenRecord,
    thresholds: SignificanceThresholds = DEFAULT_THRESHOLDS,
) -> bool:
    if existing is None:
        return True
    if relative_price_change(existing, merged) > thresholds.price_change_ratio:
        return True
    return abs(merged.volume - existing.volume) > thresholds.volume_delta


def detect_volume_spike(
    existing: TokenRecord | None,
    merged: TokenRecord,
    thresholds: SignificanceThresholds = DEFAULT_THRESHOLDS,
    *,
    now: datetime | None = None,
) -> VolumeSpikeEvent | None:
    if existing is None or existing.volume <= 0:
        return None
    if merged.volume / existing.volume <= thresholds.spike_ratio:
        return None
    return VolumeSpikeEvent(
        address=merged.address,
        volume=merged.volume,
        delta=merged.volume - existing.volume,
        timestamp=now or utcnow(),
    )


class SignificanceDetector:
    """Binds a threshold set to the two predicates."""

    def __init__(self, thresholds: SignificanceThresholds | None = None) -> None:
        self.thresholds = thresholds or DEFAULT_THRESHOLDS

    def is_significant(self, existing: TokenRecord | None, merged: TokenRecord) -> bool:
        return is_significant(existing, merged, self.thresholds)

    def detect_volume_spike(self, existing: TokenRecord | None, merged: TokenRecord) -> VolumeSpikeEvent | None:
        return detect_volume_spike(existing, merged, self.thresholds)

    def evaluate(self, existing: TokenRecord | None, merged: TokenRecord) -> list[NotificationEvent]:
        """At most one event of each kind for a single merge."""
        events: list[NotificationEvent] = []
        if self.is_significant(existing, merged):
            events.append(TokenUpdateEvent.from_record(merged))
        spike = self.detect_volume_spike(existing, merged)
        if spike is not None:
            events.append(spike)
        return events


__all__ = [
    "DEFAULT_THRESHOLDS",
    "SignificanceDetector",
    "SignificanceThresholds",
    "detect_volume_spike",
    "is_significant",
    "relative_price_change",
]
