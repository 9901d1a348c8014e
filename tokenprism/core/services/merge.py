"""Reconciliation of a canonical token record with a fresh observation.

Every record field is owned by exactly one rule in :data:`MERGE_RULES`. A rule
is a pure function of ``(existing, incoming)`` and never sees the partially
merged result, so rules can be read and tested one field at a time.

=====================  ==================  =======================================
field                  kind                behaviour
=====================  ==================  =======================================
address                immutable           kept from the existing record
name, ticker           latest non-empty    incoming when non-empty
price                  weighted blend      liquidity weighted, see ``blend_price``
liquidity              additive            ``Le + Li``, zero sum keeps ``Le``
market_cap             latest defined      incoming when not ``None``
volume                 additive            ``existing + incoming``
transaction_count      additive            ``existing + incoming``
price_change_*         latest defined      incoming when not ``None``
protocols              union               ordered, de-duplicated
sources                shallow merge       incoming keys overwrite
=====================  ==================  =======================================
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable

from tokenprism.core.models import NormalizedObservation, TokenRecord
from tokenprism.core.models.token import utcnow

FieldRule = Callable[[TokenRecord, NormalizedObservation], Any]


class MergeKind(str, Enum):
    """How a field combines across observations."""

    IMMUTABLE = "immutable"
    LATEST_NON_EMPTY = "latest_non_empty"
    LATEST_DEFINED = "latest_defined"
    ADDITIVE = "additive"
    WEIGHTED_BLEND = "weighted_blend"
    UNION = "union"
    SHALLOW_MERGE = "shallow_merge"


def unique(values: Iterable[str]) -> list[str]:
    """De-duplicate while keeping first-seen order."""
    return list(dict.fromkeys(values))


def blend_price(
    existing_price: float,
    existing_liquidity: float,
    incoming_price: float | None,
    incoming_liquidity: float,
) -> float:
    """Liquidity-weighted price reconciliation.

    A strictly more liquid incoming reading replaces the price; otherwise the
    two readings are averaged by liquidity. With no liquidity on either side the
    latest price wins. An observation without a price leaves it untouched.
    """
    if incoming_price is None:
        return existing_price
    if incoming_liquidity > existing_liquidity:
        return incoming_price
    total = existing_liquidity + incoming_liquidity
    if total > 0:
        return (existing_price * existing_liquidity + incoming_price * incoming_liquidity) / total
    return incoming_price


def _latest_non_empty(field: str) -> FieldRule:
    def rule(existing: TokenRecord, incoming: NormalizedObservation) -> Any:
        return getattr(incoming, field) or getattr(existing, field)

    return rule


def _latest_defined(field: str) -> FieldRule:
    def rule(existing: TokenRecord, incoming: NormalizedObservation) -> Any:
        value = getattr(incoming, field)
        return getattr(existing, field) if value is None else value

    return rule


def _additive(field: str) -> FieldRule:
    def rule(existing: TokenRecord, incoming: NormalizedObservation) -> Any:
        return getattr(existing, field) + (getattr(incoming, field) or 0)

    return rule


def _price(existing: TokenRecord, incoming: NormalizedObservation) -> float:
    return blend_price(existing.price, existing.liquidity, incoming.price, incoming.liquidity or 0.0)


def _liquidity(existing: TokenRecord, incoming: NormalizedObservation) -> float:
    total = existing.liquidity + (incoming.liquidity or 0.0)
    return total or existing.liquidity


def _protocols(existing: TokenRecord, incoming: NormalizedObservation) -> list[str]:
    return unique([*existing.protocols, *incoming.protocols])


def _sources(existing: TokenRecord, incoming: NormalizedObservation) -> dict[str, Any]:
    return {**existing.sources, **incoming.sources}


MERGE_RULES: dict[str, tuple[MergeKind, FieldRule]] = {
    "address": (MergeKind.IMMUTABLE, lambda existing, _: existing.address),
    "name": (MergeKind.LATEST_NON_EMPTY, _latest_non_empty("name")),
    "ticker": (MergeKind.LATEST_NON_EMPTY, _latest_non_empty("ticker")),
    "price": (MergeKind.WEIGHTED_BLEND, _price),
    "liquidity": (MergeKind.ADDITIVE, _liquidity),
    "market_cap": (MergeKind.LATEST_DEFINED, _latest_defined("market_cap")),
    "volume": (MergeKind.ADDITIVE, _additive("volume")),
    "transaction_count": (MergeKind.ADDITIVE, _additive("transaction_count")),
    "price_change_1h": (MergeKind.LATEST_DEFINED, _latest_defined("price_change_1h")),
    "price_change_24h": (MergeKind.LATEST_DEFINED, _latest_defined("price_change_24h")),
    "price_change_7d": (MergeKind.LATEST_DEFINED, _latest_defined("price_change_7d")),
    "protocols": (MergeKind.UNION, _protocols),
    "sources": (MergeKind.SHALLOW_MERGE, _sources),
}


def record_from_observation(incoming: NormalizedObservation, *, now: datetime | None = None) -> TokenRecord:
    """First sighting of an address: the observation becomes the record."""
    return TokenRecord(
        address=incoming.address,
        name=incoming.name,
        ticker=incoming.ticker,
        price=incoming.price or 0.0,
        liquidity=incoming.liquidity or 0.0,
        market_cap=incoming.market_cap,
        volume=incoming.volume or 0.0,
        transaction_count=incoming.transaction_count or 0,
        price_change_1h=incoming.price_change_1h,
        price_change_24h=incoming.price_change_24h,
        price_change_7d=incoming.price_change_7d,
        protocols=unique(incoming.protocols),
        sources=dict(incoming.sources),
        last_updated=now or utcnow(),
    )


def merge(
    existing: TokenRecord | None,
    incoming: NormalizedObservation,
    *,
    now: datetime | None = None,
) -> TokenRecord:
    """Reconcile ``existing`` with ``incoming`` into a new canonical record."""
    if existing is None:
        return record_from_observation(incoming, now=now)

    values = {field: rule(existing, incoming) for field, (_, rule) in MERGE_RULES.items()}
    values["last_updated"] = now or utcnow()
    return TokenRecord(**values)


__all__ = [
    "MERGE_RULES",
    "MergeKind",
    "blend_price",
    "merge",
    "record_from_observation",
    "unique",
]
