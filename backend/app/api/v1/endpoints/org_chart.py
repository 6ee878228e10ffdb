from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status

from app.services.org_chart_service import org_chart_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/org-chart", tags=["org-chart"])


@router.get("")
async def get_org_chart(
    start_from: str | None = None,
    depth: int | None = Query(None, ge=1),
):
    try:
        return {"data": await org_chart_service.get_org_chart(start_from, depth)}
    except Exception as err:
        logger.exception("Failed to build org chart")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve org chart",
        ) from err


@router.get("/flow")
async def get_org_chart_flow(
    expanded: list[str] = Query(default=[]),  # noqa: B008
    start_from: str | None = None,
    depth: int | None = Query(None, ge=1),
):
    try:
        return await org_chart_service.get_flow(expanded, start_from, depth)
    except Exception as err:
        logger.exception("Failed to build org chart flow")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve org chart",
        ) from err
