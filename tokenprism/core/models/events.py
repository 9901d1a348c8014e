"""Notification events pushed to subscribers."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from tokenprism.core.models.token import TokenRecord, utcnow


class TokenUpdateEvent(BaseModel):
    """A canonical record changed enough to be worth pushing."""

    event: Literal["token_update"] = "token_update"
    address: str
    ticker: str | None = None
    price: float
    price_change_24h: float | None = None
    volume: float
    liquidity: float
    last_updated: datetime
    protocols: list[str] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: TokenRecord) -> "TokenUpdateEvent":
        return cls(
            address=record.address,
            ticker=record.ticker,
            price=record.price,
            price_change_24h=record.price_change_24h,
            volume=record.volume,
            liquidity=record.liquidity,
            last_updated=record.last_updated,
            protocols=list(record.protocols),
        )


class VolumeSpikeEvent(BaseModel):
    """Cumulative volume jumped past the spike ratio within one merge."""

    event: Literal["volume_spike"] = "volume_spike"
    address: str
    volume: float
    delta: float
    timestamp: datetime = Field(default_factory=utcnow)


NotificationEvent = TokenUpdateEvent | VolumeSpikeEvent
