"""Audit trail for directory changes."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from app.core.query import Equals, combine
from app.models.audit import AuditAction, AuditEntityType, AuditLogEntry
from app.services.record_store import AUDIT_LOGS, RecordStore, record_store

logger = logging.getLogger(__name__)


def build_changes(old: Mapping[str, Any], new: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    """Return ``{key: {"old", "new"}}`` for every key of ``new`` whose value changed.

    ``None`` and a missing key count as the same value.
    """
    changes: dict[str, dict[str, Any]] = {}
    for key, new_value in new.items():
        old_value = old.get(key)
        if new_value is None and old_value is None:
            continue
        if new_value != old_value:
            changes[key] = {"old": old_value, "new": new_value}
    return changes


def get_ip_address(headers: Mapping[str, str]) -> str | None:
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return headers.get("x-real-ip") or None


def _transform_log(raw: dict[str, Any]) -> AuditLogEntry:
    return AuditLogEntry(
        id=raw.get("id") or "unknown",
        user_id=raw.get("userId"),
        entity_type=raw.get("entityType") or "",
        entity_id=raw.get("entityId") or "",
        action=raw.get("action") or "",
        changes=raw.get("changes") or {},
        ip_address=raw.get("ipAddress"),
        timestamp=raw.get("timestamp"),
    )


class AuditService:
    def __init__(self, store: RecordStore | None = None) -> None:
        self.store = store if store is not None else record_store

    async def create_log(
        self,
        *,
        entity_type: AuditEntityType,
        entity_id: str,
        action: AuditAction,
        changes: dict[str, Any],
        user_id: str | None = None,
        ip_address: str | None = None,
    ) -> None:
        doc = {
            "id": str(uuid.uuid4()),
            "userId": user_id,
            "entityType": entity_type,
            "entityId": entity_id,
            "action": action,
            "changes": changes,
            "ipAddress": ip_address,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        try:
            await self.store.create(AUDIT_LOGS, doc)
        except Exception:
            # Audit failures must not break the operation being audited.
            logger.exception("Failed to create audit log for %s %s", entity_type, entity_id)

    async def list_logs(
        self,
        entity_type: str | None = None,
        entity_id: str | None = None,
        limit: int = 50,
    ) -> list[AuditLogEntry]:
        where = combine(
            Equals("entityType", entity_type) if entity_type else None,
            Equals("entityId", entity_id) if entity_id else None,
        )
        rows = await self.store.find_many(
            AUDIT_LOGS,
            where,
            order_by="timestamp",
            descending=True,
            offset=0,
            limit=limit,
        )
        return [_transform_log(row) for row in rows]


audit_service = AuditService()
