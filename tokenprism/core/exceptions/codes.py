"""Error codes shared by tokenprism exceptions and API payloads."""

from enum import Enum


class ErrorCode(str, Enum):
    """Standardised error codes."""

    GENERAL_ERROR = "GENERAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    PROVIDER_ERROR = "PROVIDER_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"

    STORE_ERROR = "STORE_ERROR"

    AGGREGATION_ERROR = "AGGREGATION_ERROR"

