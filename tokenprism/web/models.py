"""Response models for the HTTP API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tokenprism.core.models import TokenRecord
from tokenprism.core.models.token import utcnow


class TokenPage(BaseModel):
    """One page of tokens ranked by cumulative volume."""

    model_config = ConfigDict(populate_by_name=True)

    data: list[TokenRecord] = Field(default_factory=list, description="Records, highest volume first")
    next_cursor: str | None = Field(None, alias="nextCursor", description="Opaque cursor for the next page")
    count: int = Field(..., ge=0, description="Number of tracked tokens")


class HealthStatus(BaseModel):
    ok: bool
    error: str | None = None


class ErrorResponse(BaseModel):
    """Error payload returned by the exception handlers."""

    success: bool = Field(False, description="Always false")
    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Human readable message")
    details: dict[str, Any] | None = Field(None, description="Structured error details")
    timestamp: datetime = Field(default_factory=utcnow)
    request_id: str | None = Field(None, description="X-Request-ID of the failed request")
