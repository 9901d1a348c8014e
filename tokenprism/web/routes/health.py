"""Liveness endpoint backed by a store ping."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from loguru import logger

from tokenprism.core.exceptions import StoreError

from ..models import HealthStatus

router = APIRouter()


@router.get("/health", response_model=HealthStatus)
async def health_check(request: Request) -> HealthStatus | JSONResponse:
    store = request.app.state.store
    try:
        healthy = await store.ping()
    except StoreError as exc:
        logger.bind(endpoint="/health", error_code=exc.error_code).warning("Health check failed: {}", exc.message)
        return JSONResponse(status_code=503, content=HealthStatus(ok=False, error=exc.message).model_dump())
    if not healthy:
        return JSONResponse(status_code=503, content=HealthStatus(ok=False, error="store did not answer").model_dump())
    return HealthStatus(ok=True)
