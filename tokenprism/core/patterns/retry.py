"""Exponential backoff retry for outbound source calls."""

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from loguru import logger

from tokenprism.core.exceptions import NetworkError, RateLimitError

T = TypeVar("T")


class RetryState(Enum):
    """Retry lifecycle."""

    READY = "ready"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class RetryConfig:
    """Retry configuration."""

    max_attempts: int = 5
    base_delay: float = 0.3  # seconds
    max_delay: float = 10.0  # seconds
    exponential_base: float = 2.0
    jitter: bool = True
    retry_on_exceptions: list[type] = field(default_factory=lambda: [NetworkError, RateLimitError])


class ExponentialBackoffRetry:
    """Runs a coroutine function until it succeeds or attempts run out."""

    def __init__(
        self,
        config: RetryConfig | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config or RetryConfig()
        self._sleep = sleep
        self.attempt_count = 0
        self.total_delay = 0.0
        self.state = RetryState.READY
        self.last_exception: Exception | None = None

    async def execute(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Call ``func`` with retries.

        Raises:
            Exception: the last error once it is not retryable or attempts are exhausted
        """
        self.state = RetryState.RUNNING
        self.attempt_count = 0
        self.total_delay = 0.0

        while True:
            try:
                self.attempt_count += 1
                result = await func(*args, **kwargs)
                self.state = RetryState.COMPLETED
                return result
            except Exception as e:
                self.last_exception = e
                should_retry = any(isinstance(e, exc_type) for exc_type in self.config.retry_on_exceptions)
                if not should_retry or self.attempt_count >= self.config.max_attempts:
                    self.state = RetryState.FAILED
                    raise

                delay = self._calculate_delay(self.attempt_count - 1)
                retry_after = getattr(e, "retry_after", None)
                if retry_after:
                    delay = min(max(delay, float(retry_after)), self.config.max_delay)
                logger.warning(
                    "Retry {}/{} in {:.2f}s after {}",
                    self.attempt_count,
                    self.config.max_attempts,
                    delay,
                    e,
                )
                await self._sleep(delay)
                self.total_delay += delay

    def _calculate_delay(self, attempt_number: int) -> float:
        if attempt_number < 0:
            return 0.0
        delay = self.config.base_delay * (self.config.exponential_base**attempt_number)
        if self.config.jitter:
            delay += random.uniform(0, self.config.base_delay)
        return min(delay, self.config.max_delay)

    def get_stats(self) -> dict[str, Any]:
        return {
            "attempts": self.attempt_count,
            "max_attempts": self.config.max_attempts,
            "total_delay": self.total_delay,
            "state": self.state.value,
            "last_exception": str(self.last_exception) if self.last_exception else None,
        }
