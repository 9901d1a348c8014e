"""HTTP and WebSocket routes."""

from tokenprism.web.metrics import router as metrics_router
from tokenprism.web.routes.health import router as health_router
from tokenprism.web.routes.tokens import router as tokens_router
from tokenprism.web.routes.ws import router as ws_router

__all__ = ["health_router", "metrics_router", "tokens_router", "ws_router"]
