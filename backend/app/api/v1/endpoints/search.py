from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status

from app.models.search import SearchResponse
from app.services.search_service import search_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=SearchResponse, response_model_exclude_none=True)
async def search(
    q: str = "",
    type: str = Query("all", pattern=r"^(all|employees|teams)$"),  # noqa: A002
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    try:
        return await search_service.search(q, search_type=type, page=page, limit=limit)  # type: ignore[arg-type]
    except Exception as err:
        logger.exception("Search failed for q=%r", q)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to perform search",
        ) from err
