"""Token record and observation models."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


def utcnow() -> datetime:
    return datetime.now(UTC)


class NormalizedObservation(BaseModel):
    """One cycle's reading for a token, already reconciled across upstream payload shapes.

    Additive fields (``volume``, ``transaction_count``) are validated non-negative
    so that merging an observation can never decrease a cumulative total.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    address: str = Field(..., min_length=1)
    name: str | None = None
    ticker: str | None = None
    price: float | None = Field(None, ge=0)
    liquidity: float | None = Field(None, ge=0)
    market_cap: float | None = None
    volume: float | None = Field(None, ge=0)
    transaction_count: int | None = Field(None, ge=0)
    price_change_1h: float | None = None
    price_change_24h: float | None = None
    price_change_7d: float | None = None
    protocols: list[str] = Field(default_factory=list)
    sources: dict[str, Any] = Field(default_factory=dict)

    @field_validator("address")
    @classmethod
    def normalize_address(cls, value: str) -> str:
        """Addresses are compared case-insensitively."""
        return value.strip().lower()


class TokenRecord(BaseModel):
    """Canonical reconciled state for one token address."""

    model_config = ConfigDict(allow_inf_nan=False)

    address: str = Field(..., min_length=1)
    name: str | None = None
    ticker: str | None = None
    price: float = Field(0.0, ge=0)
    liquidity: float = Field(0.0, ge=0)
    market_cap: float | None = None
    volume: float = Field(0.0, ge=0)
    transaction_count: int = Field(0, ge=0)
    price_change_1h: float | None = None
    price_change_24h: float | None = None
    price_change_7d: float | None = None
    protocols: list[str] = Field(default_factory=list)
    sources: dict[str, Any] = Field(default_factory=dict)
    last_updated: datetime = Field(default_factory=utcnow)

    @field_serializer("last_updated", when_used="json")
    def serialize_datetime(self, value: datetime) -> str:
        """Serialize datetime to isoformat string."""
        return value.isoformat()
