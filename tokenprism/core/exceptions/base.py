"""Core tokenprism exception classes."""

from typing import Any

from tokenprism.core.exceptions.codes import ErrorCode


class TokenPrismError(Exception):
    """Base class for all tokenprism errors."""

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.GENERAL_ERROR.value,
        details: dict[str, Any] | None = None,
    ):
        """Initialise the error.

        Args:
            message: human readable message
            error_code: value of an :class:`ErrorCode`
            details: extra structured context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_payload(self) -> dict[str, Any]:
        """Return a serializable payload representing the error."""

        return {
            "code": self.error_code,
            "message": self.message,
            "details": dict(self.details),
        }


class ConfigurationError(TokenPrismError):
    """Invalid configuration value."""

    def __init__(
        self,
        message: str,
        key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if key:
            super_details["key"] = key
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR.value, super_details)
        self.key = key


class ProviderError(TokenPrismError):
    """Upstream data source failure."""

    def __init__(
        self,
        message: str,
        provider_name: str,
        error_code: str = ErrorCode.PROVIDER_ERROR.value,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        super_details.setdefault("provider", provider_name)
        super().__init__(message, error_code, super_details)
        self.provider_name = provider_name


class RateLimitError(ProviderError):
    """Upstream source answered 429."""

    def __init__(
        self,
        message: str,
        provider_name: str,
        retry_after: float | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if retry_after is not None:
            super_details["retry_after"] = retry_after
        super().__init__(message, provider_name, ErrorCode.RATE_LIMIT_ERROR.value, super_details)
        self.retry_after = retry_after


class NetworkError(ProviderError):
    """Transport failure or unexpected HTTP status from a source."""

    def __init__(
        self,
        message: str,
        provider_name: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if status_code is not None:
            super_details["status_code"] = status_code
        super().__init__(message, provider_name, ErrorCode.NETWORK_ERROR.value, super_details)
        self.status_code = status_code


class StoreError(TokenPrismError):
    """Record store read or write failed."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if operation:
            super_details["operation"] = operation
        if key:
            super_details["key"] = key
        super().__init__(message, ErrorCode.STORE_ERROR.value, super_details)
        self.operation = operation
        self.key = key


class AggregationError(TokenPrismError):
    """One or more merges of a poll cycle failed."""

    def __init__(
        self,
        message: str,
        failed_addresses: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if failed_addresses:
            super_details["failed_addresses"] = failed_addresses
        super().__init__(message, ErrorCode.AGGREGATION_ERROR.value, super_details)
        self.failed_addresses = failed_addresses or []
