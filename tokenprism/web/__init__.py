"""HTTP and WebSocket surface."""

from tokenprism.web.app import create_app
from tokenprism.web.models import ErrorResponse, TokenPage

__all__ = ["create_app", "ErrorResponse", "TokenPage"]
