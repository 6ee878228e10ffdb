from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.core.dependencies import get_current_actor
from app.models.auth import ActorInfo
from app.services.chat_service import chat_service
from app.services.record_store import record_store

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    services: dict[str, str] = {}

    try:
        if record_store.initialized:
            ok = await record_store.check_connection()
            services["cosmos_db"] = "ok" if ok else "error"
        else:
            services["cosmos_db"] = "not_configured"
    except Exception:
        services["cosmos_db"] = "error"

    services["azure_openai"] = "ok" if chat_service.initialized else "not_configured"

    all_ok = all(v in ("ok", "not_configured") for v in services.values())

    return {
        "status": "healthy" if all_ok else "degraded",
        "version": settings.APP_VERSION,
        "services": services,
    }


@router.get("/health/ready")
async def readiness_probe():
    return {"ready": True}


@router.get("/me", response_model=ActorInfo)
async def current_actor(actor: ActorInfo = Depends(get_current_actor)):  # noqa: B008
    return actor
