from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.dependencies import get_current_actor
from app.models.auth import ActorInfo
from app.models.chat import (
    ChatMessage,
    ChatSessionDetail,
    ChatSessionList,
    ChatSessionSummary,
    CreateSessionRequest,
    RenameSessionRequest,
    SendMessageRequest,
    SendMessageResponse,
)
from app.services.chat_session_service import (
    ChatSessionDeletedError,
    ChatSessionNotFoundError,
    ChatValidationError,
    chat_session_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat/sessions", tags=["chat"])


def _session_error(session_id: str, err: Exception) -> HTTPException:
    if isinstance(err, ChatSessionNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Session '{session_id}' not found")
    if isinstance(err, ChatSessionDeletedError):
        return HTTPException(status_code=status.HTTP_410_GONE, detail=f"Session '{session_id}' has been deleted")
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err))


@router.get("", response_model=ChatSessionList)
async def list_sessions(
    search: str = "",
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor: ActorInfo = Depends(get_current_actor),  # noqa: B008
):
    try:
        return await chat_session_service.list_sessions(actor.employee_id, search, page, limit)
    except Exception as err:
        logger.exception("Failed to list chat sessions for %s", actor.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve chat sessions",
        ) from err


@router.post("", response_model=ChatSessionDetail, status_code=status.HTTP_201_CREATED)
async def create_session(
    body: CreateSessionRequest | None = None,
    actor: ActorInfo = Depends(get_current_actor),  # noqa: B008
):
    try:
        return await chat_session_service.create_session(actor.employee_id, body.title if body else None)
    except Exception as err:
        logger.exception("Failed to create chat session for %s", actor.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create chat session",
        ) from err


@router.get("/{session_id}", response_model=ChatSessionDetail)
async def get_session(session_id: str):
    try:
        return await chat_session_service.get_session(session_id)
    except (ChatSessionNotFoundError, ChatSessionDeletedError) as err:
        raise _session_error(session_id, err) from err
    except Exception as err:
        logger.exception("Failed to get chat session %s", session_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve chat session",
        ) from err


@router.patch("/{session_id}", response_model=ChatSessionSummary)
async def rename_session(session_id: str, body: RenameSessionRequest):
    try:
        return await chat_session_service.rename_session(session_id, body.title)
    except (ChatSessionNotFoundError, ChatSessionDeletedError, ChatValidationError) as err:
        raise _session_error(session_id, err) from err
    except Exception as err:
        logger.exception("Failed to rename chat session %s", session_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update chat session",
        ) from err


@router.delete("/{session_id}")
async def delete_session(session_id: str):
    try:
        await chat_session_service.delete_session(session_id)
    except (ChatSessionNotFoundError, ChatSessionDeletedError) as err:
        raise _session_error(session_id, err) from err
    except Exception as err:
        logger.exception("Failed to delete chat session %s", session_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete chat session",
        ) from err

    return {"success": True}


@router.get("/{session_id}/messages", response_model=list[ChatMessage])
async def list_messages(session_id: str, limit: int = Query(100, ge=1, le=500)):
    try:
        return await chat_session_service.get_messages(session_id, limit)
    except (ChatSessionNotFoundError, ChatSessionDeletedError) as err:
        raise _session_error(session_id, err) from err
    except Exception as err:
        logger.exception("Failed to list messages for session %s", session_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve messages",
        ) from err


@router.post("/{session_id}/messages", response_model=SendMessageResponse)
async def send_message(session_id: str, body: SendMessageRequest):
    logger.info("Chat message for session=%s content=%s", session_id, body.content[:50])
    try:
        return await chat_session_service.send_message(session_id, body.content)
    except (ChatSessionNotFoundError, ChatSessionDeletedError, ChatValidationError) as err:
        raise _session_error(session_id, err) from err
    except Exception as err:
        logger.exception("Failed to send message to session %s", session_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send message",
        ) from err
