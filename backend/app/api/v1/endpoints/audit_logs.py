from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status

from app.models.audit import AuditLogEntry
from app.services.audit_service import audit_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/audit-logs", tags=["audit-logs"])


@router.get("", response_model=list[AuditLogEntry])
async def list_audit_logs(
    entity_type: str | None = Query(None, pattern=r"^(employee|team)$"),
    entity_id: str | None = None,
    limit: int = Query(50, ge=1, le=500),
):
    try:
        return await audit_service.list_logs(entity_type, entity_id, limit)
    except Exception as err:
        logger.exception("Failed to list audit logs")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve audit logs",
        ) from err
