"""Tests for the exception hierarchy."""

from __future__ import annotations

import pytest

from tokenprism.core.exceptions import (
    AggregationError,
    ConfigurationError,
    ErrorCode,
    NetworkError,
    ProviderError,
    RateLimitError,
    StoreError,
    TokenPrismError,
)


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (ConfigurationError("bad", key="server.port"), ErrorCode.CONFIGURATION_ERROR),
        (ProviderError("bad", provider_name="jupiter"), ErrorCode.PROVIDER_ERROR),
        (RateLimitError("slow", provider_name="dexscreener", retry_after=3), ErrorCode.RATE_LIMIT_ERROR),
        (NetworkError("down", provider_name="geckoterminal", status_code=502), ErrorCode.NETWORK_ERROR),
        (StoreError("down", operation="get", key="token:a"), ErrorCode.STORE_ERROR),
        (AggregationError("partial", failed_addresses=["a"]), ErrorCode.AGGREGATION_ERROR),
    ],
)
def test_errors_carry_their_code(error: TokenPrismError, code: ErrorCode) -> None:
    assert isinstance(error, TokenPrismError)
    assert error.error_code == code.value
    assert error.to_payload()["code"] == code.value


def test_provider_details_name_the_source() -> None:
    error = RateLimitError("slow", provider_name="dexscreener", retry_after=3)

    assert isinstance(error, ProviderError)
    assert error.details == {"provider": "dexscreener", "retry_after": 3}
    assert error.to_payload() == {
        "code": "RATE_LIMIT_ERROR",
        "message": "slow",
        "details": {"provider": "dexscreener", "retry_after": 3},
    }


def test_aggregation_error_lists_failed_addresses() -> None:
    error = AggregationError("2 merges failed", failed_addresses=["a", "b"])

    assert error.failed_addresses == ["a", "b"]
    assert error.details["failed_addresses"] == ["a", "b"]
    assert str(error) == "2 merges failed"
