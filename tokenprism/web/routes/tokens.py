"""Paged token listing."""

from fastapi import APIRouter, Query, Request
from loguru import logger

from tokenprism.core.services import Pager

from ..models import TokenPage

router = APIRouter()


@router.get("/tokens", response_model=TokenPage, response_model_by_alias=True)
async def list_tokens(
    request: Request,
    limit: int | None = Query(None, ge=1, le=100, description="Page size, defaults to the configured page size"),
    cursor: str | None = Query(None, description="Cursor from a previous page"),
) -> TokenPage:
    """Tokens ordered by cumulative volume, highest first.

    Store failures surface as 503 through the ``TokenPrismError`` handler.
    """
    pager: Pager = request.app.state.pager
    server = request.app.state.config.server
    limit = min(limit or server.default_page_size, server.max_page_size)
    page = await pager.page(limit, cursor)
    logger.bind(endpoint="/tokens").debug("Served {} of {} tokens", len(page.records), page.count)
    return TokenPage(data=page.records, next_cursor=page.next_cursor, count=page.count)
