"""HTTP plumbing shared by the upstream token sources."""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass
from typing import Any

import httpx

from tokenprism.core.config import ProviderConfig
from tokenprism.core.exceptions import NetworkError, ProviderError, RateLimitError
from tokenprism.core.patterns import ExponentialBackoffRetry, RetryConfig


@dataclass
class HttpConfig:
    """Configuration for HTTP client behavior."""

    timeout: float = 10.0
    user_agent: str = "tokenprism/0.1.0"

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class HttpFetcher:
    """JSON GETs with status classification and exponential backoff.

    Transport errors and 5xx raise :class:`NetworkError`, 429 raises
    :class:`RateLimitError`; both are retried. Other non-2xx statuses raise a
    plain :class:`ProviderError` immediately.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        http_config: HttpConfig | None = None,
        retry_config: RetryConfig | None = None,
        retry: ExponentialBackoffRetry | None = None,
    ) -> None:
        self.http_config = http_config or HttpConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self.http_config.timeout,
            headers={"User-Agent": self.http_config.user_agent, "Accept": "application/json"},
        )
        self._retry_config = retry_config or RetryConfig()
        self._retry = retry

    @classmethod
    def from_config(cls, config: ProviderConfig, client: httpx.AsyncClient | None = None) -> "HttpFetcher":
        return cls(
            client,
            http_config=HttpConfig(timeout=config.timeout),
            retry_config=RetryConfig(
                max_attempts=config.max_attempts,
                base_delay=config.base_delay,
                max_delay=config.max_delay,
            ),
        )

    async def get_json(self, source: str, url: str, *, params: dict[str, Any] | None = None) -> Any:
        retry = self._retry or ExponentialBackoffRetry(self._retry_config)
        return await retry.execute(self._get_once, source, url, params)

    async def _get_once(self, source: str, url: str, params: dict[str, Any] | None) -> Any:
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise NetworkError(f"{source} request failed: {exc}", provider_name=source, details={"url": url}) from exc

        status = response.status_code
        if status == 429:
            raise RateLimitError(f"{source} rate limited", provider_name=source, retry_after=_retry_after(response))
        if status >= 500:
            raise NetworkError(f"{source} answered {status}", provider_name=source, status_code=status)
        if status >= 400:
            raise ProviderError(
                f"{source} answered {status}",
                provider_name=source,
                details={"status_code": status, "url": url},
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(f"{source} returned invalid JSON", provider_name=source) from exc

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class TokenSource(ABC):
    """An upstream API reached through a shared :class:`HttpFetcher`."""

    name: str = "source"
    base_url: str = ""

    def __init__(self, fetcher: HttpFetcher, *, base_url: str | None = None) -> None:
        self.fetcher = fetcher
        if base_url is not None:
            self.base_url = base_url.rstrip("/")

    async def _get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        return await self.fetcher.get_json(self.name, f"{self.base_url}{path}", params=params)
