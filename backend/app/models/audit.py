from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel

AuditAction = Literal["create", "update", "delete"]
AuditEntityType = Literal["employee", "team"]


class AuditLogEntry(BaseModel):
    id: str
    user_id: str | None = None
    entity_type: str
    entity_id: str
    action: str
    changes: dict[str, Any] = {}
    ip_address: str | None = None
    timestamp: str | None = None
