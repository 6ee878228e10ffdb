"""Chat sessions, message history and the send-message flow."""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from app.core.query import Contains, Equals, IsNull, combine
from app.models.chat import (
    ChatMessage,
    ChatSessionDetail,
    ChatSessionList,
    ChatSessionPagination,
    ChatSessionSummary,
    SendMessageResponse,
)
from app.services import pagination
from app.services.chat_service import DEFAULT_TITLE, FALLBACK_REPLY, ChatService, chat_service
from app.services.record_store import CHAT_MESSAGES, CHAT_SESSIONS, RecordStore, record_store

logger = logging.getLogger(__name__)

TITLE_FALLBACK_LENGTH = 50


class ChatSessionNotFoundError(Exception):
    pass


class ChatSessionDeletedError(Exception):
    pass


class ChatValidationError(Exception):
    pass


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_message(raw: dict[str, Any]) -> ChatMessage:
    return ChatMessage(
        id=raw["id"],
        session_id=raw.get("sessionId") or "",
        role=raw.get("role") or "user",
        content=raw.get("content"),
        tokens=raw.get("tokens") or 0,
        created_at=raw.get("createdAt"),
    )


def _to_summary(raw: dict[str, Any], messages: list[dict[str, Any]]) -> ChatSessionSummary:
    last = messages[-1] if messages else None
    return ChatSessionSummary(
        id=raw["id"],
        user_id=raw.get("userId") or "",
        title=raw.get("title") or DEFAULT_TITLE,
        total_tokens=raw.get("totalTokens") or 0,
        deleted_at=raw.get("deletedAt"),
        created_at=raw.get("createdAt"),
        updated_at=raw.get("updatedAt"),
        message_count=len(messages),
        last_message=last.get("content") if last else None,
        last_message_at=last.get("createdAt") if last else None,
    )


class ChatSessionService:
    def __init__(self, store: RecordStore | None = None, chat: ChatService | None = None) -> None:
        self.store = store if store is not None else record_store
        self.chat = chat if chat is not None else chat_service

    async def _messages(self, session_id: str, limit: int | None = None) -> list[dict[str, Any]]:
        return await self.store.find_many(
            CHAT_MESSAGES,
            Equals("sessionId", session_id),
            order_by="createdAt",
            offset=0 if limit is not None else None,
            limit=limit,
        )

    async def _live_session(self, session_id: str) -> dict[str, Any]:
        raw = await self.store.get(CHAT_SESSIONS, session_id)
        if not raw:
            raise ChatSessionNotFoundError(session_id)
        if raw.get("deletedAt"):
            raise ChatSessionDeletedError(session_id)
        return raw

    async def list_sessions(self, user_id: str, search: str = "", page: int = 1, limit: int = 20) -> ChatSessionList:
        where = combine(
            Equals("userId", user_id),
            IsNull("deletedAt"),
            Contains("title", search.strip()) if search.strip() else None,
        )
        rows, total = await asyncio.gather(
            self.store.find_many(
                CHAT_SESSIONS,
                where,
                order_by="updatedAt",
                descending=True,
                offset=pagination.page_offset(page, limit),
                limit=limit,
            ),
            self.store.count(CHAT_SESSIONS, where),
        )
        histories = await asyncio.gather(*(self._messages(r["id"]) for r in rows))

        return ChatSessionList(
            sessions=[_to_summary(row, messages) for row, messages in zip(rows, histories, strict=True)],
            pagination=ChatSessionPagination(
                page=page,
                limit=limit,
                total_count=total,
                total_pages=pagination.total_pages(total, limit),
                has_more=pagination.has_more(page, total, limit),
            ),
        )

    async def create_session(self, user_id: str, title: str | None = None) -> ChatSessionDetail:
        now = _now()
        doc = {
            "id": str(uuid.uuid4()),
            "userId": user_id,
            "title": (title or "").strip() or DEFAULT_TITLE,
            "totalTokens": 0,
            "deletedAt": None,
            "createdAt": now,
            "updatedAt": now,
        }
        saved = await self.store.create(CHAT_SESSIONS, doc)
        return ChatSessionDetail(**_to_summary(saved, []).model_dump())

    async def get_session(self, session_id: str) -> ChatSessionDetail:
        raw = await self._live_session(session_id)
        messages = await self._messages(session_id)
        return ChatSessionDetail(
            **_to_summary(raw, messages).model_dump(),
            messages=[_to_message(m) for m in messages],
        )

    async def rename_session(self, session_id: str, title: str) -> ChatSessionSummary:
        if not title.strip():
            raise ChatValidationError("Title is required and must be a non-empty string")
        raw = await self._live_session(session_id)
        updated = await self.store.replace(CHAT_SESSIONS, {**raw, "title": title.strip(), "updatedAt": _now()})
        return _to_summary(updated, await self._messages(session_id))

    async def delete_session(self, session_id: str) -> None:
        raw = await self._live_session(session_id)
        await self.store.replace(CHAT_SESSIONS, {**raw, "deletedAt": _now()})

    async def get_messages(self, session_id: str, limit: int = 100) -> list[ChatMessage]:
        await self._live_session(session_id)
        return [_to_message(m) for m in await self._messages(session_id, limit)]

    async def _save_message(self, session_id: str, role: str, content: str, tokens: int = 0) -> dict[str, Any]:
        doc = {
            "id": str(uuid.uuid4()),
            "sessionId": session_id,
            "role": role,
            "content": content,
            "tokens": tokens,
            "createdAt": _now(),
        }
        return await self.store.create(CHAT_MESSAGES, doc)

    async def send_message(self, session_id: str, content: str) -> SendMessageResponse:
        text = (content or "").strip()
        if not text:
            raise ChatValidationError("Message content is required")

        session = await self._live_session(session_id)
        previous = await self._messages(session_id)

        is_first = not previous
        title = session.get("title") or DEFAULT_TITLE
        if is_first and title == DEFAULT_TITLE:
            try:
                title = await self.chat.generate_title(text)
            except Exception:
                logger.exception("Failed to generate title for session %s", session_id)
                title = text[:TITLE_FALLBACK_LENGTH]

        user_message = await self._save_message(session_id, "user", text)

        history = [
            {"role": m["role"], "content": m.get("content") or ""}
            for m in previous
            if m.get("role") in ("user", "assistant")
        ]
        history.append({"role": "user", "content": text})

        try:
            reply = await self.chat.generate_reply(history)
            reply_text, tokens = reply.content, reply.tokens
        except Exception:
            logger.exception("Chat reply failed for session %s", session_id)
            reply_text, tokens = FALLBACK_REPLY, 0

        assistant_message = await self._save_message(session_id, "assistant", reply_text, tokens)

        updated = {
            **session,
            "totalTokens": (session.get("totalTokens") or 0) + tokens,
            "updatedAt": _now(),
        }
        title_changed = is_first and title != session.get("title")
        if title_changed:
            updated["title"] = title
        await self.store.replace(CHAT_SESSIONS, updated)

        return SendMessageResponse(
            user_message=_to_message(user_message),
            assistant_message=_to_message(assistant_message),
            session_title=title if is_first else None,
        )


chat_session_service = ChatSessionService()
