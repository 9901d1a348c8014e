"""Web helpers."""

from fastapi import Request


def get_request_id(request: Request) -> str | None:
    """Read the caller supplied X-Request-ID header."""
    return request.headers.get("X-Request-ID")
