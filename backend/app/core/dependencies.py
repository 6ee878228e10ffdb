from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException, status

from app.core.config import settings
from app.core.permissions import get_user_by_id, has_permission, permissions_for
from app.models.auth import ActorInfo

logger = logging.getLogger(__name__)


async def get_current_actor(x_demo_user: str | None = Header(None)) -> ActorInfo:
    user_id = x_demo_user or settings.DEMO_USER_ID
    user = get_user_by_id(user_id)
    if user is None:
        logger.warning("Unknown demo user requested: %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown demo user '{user_id}'",
        )

    return ActorInfo(**user.model_dump(), permissions=permissions_for(user.role))


def require_permission(*permissions: str):
    async def _check_permission(actor: ActorInfo = Depends(get_current_actor)) -> ActorInfo:
        if not any(has_permission(actor.role, p) for p in permissions):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {', '.join(permissions)}",
            )
        return actor

    return _check_permission
