"""Tests for exponential backoff."""

from __future__ import annotations

import pytest

from tokenprism.core.exceptions import NetworkError, ProviderError, RateLimitError
from tokenprism.core.patterns import ExponentialBackoffRetry, RetryConfig, RetryState


class Recorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.mark.asyncio
async def test_retries_network_errors_with_growing_delay() -> None:
    sleep = Recorder()
    retry = ExponentialBackoffRetry(RetryConfig(max_attempts=4, base_delay=0.3, jitter=False), sleep=sleep)
    attempts = []

    async def flaky() -> str:
        attempts.append(1)
        if len(attempts) < 4:
            raise NetworkError("boom", provider_name="test")
        return "ok"

    assert await retry.execute(flaky) == "ok"
    assert sleep.delays == pytest.approx([0.3, 0.6, 1.2])
    assert retry.state is RetryState.COMPLETED
    assert retry.get_stats()["attempts"] == 4


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts() -> None:
    retry = ExponentialBackoffRetry(RetryConfig(max_attempts=2, jitter=False), sleep=Recorder())

    async def always_down() -> None:
        raise NetworkError("down", provider_name="test")

    with pytest.raises(NetworkError):
        await retry.execute(always_down)
    assert retry.attempt_count == 2
    assert retry.state is RetryState.FAILED


@pytest.mark.asyncio
async def test_non_retryable_error_raises_immediately() -> None:
    sleep = Recorder()
    retry = ExponentialBackoffRetry(RetryConfig(max_attempts=5), sleep=sleep)

    async def rejected() -> None:
        raise ProviderError("bad request", provider_name="test")

    with pytest.raises(ProviderError):
        await retry.execute(rejected)
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_retry_after_extends_delay_within_cap() -> None:
    sleep = Recorder()
    retry = ExponentialBackoffRetry(
        RetryConfig(max_attempts=3, base_delay=0.1, max_delay=5.0, jitter=False), sleep=sleep
    )
    attempts = []

    async def limited() -> str:
        attempts.append(1)
        if len(attempts) == 1:
            raise RateLimitError("slow down", provider_name="test", retry_after=2.0)
        if len(attempts) == 2:
            raise RateLimitError("slow down", provider_name="test", retry_after=60.0)
        return "ok"

    assert await retry.execute(limited) == "ok"
    assert sleep.delays == [2.0, 5.0]


def test_delay_is_capped() -> None:
    retry = ExponentialBackoffRetry(RetryConfig(base_delay=1.0, max_delay=3.0, jitter=False))

    assert retry._calculate_delay(0) == 1.0
    assert retry._calculate_delay(5) == 3.0
