"""Exception handling module."""

from tokenprism.core.exceptions.base import (
    AggregationError,
    ConfigurationError,
    NetworkError,
    ProviderError,
    RateLimitError,
    StoreError,
    TokenPrismError,
)
from tokenprism.core.exceptions.codes import ErrorCode

__all__ = [
    "TokenPrismError",
    "ConfigurationError",
    "ProviderError",
    "RateLimitError",
    "NetworkError",
    "StoreError",
    "AggregationError",
    "ErrorCode",
]
