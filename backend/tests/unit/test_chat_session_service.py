from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.models.chat import ChatSessionDetail
from app.services.chat_service import FALLBACK_REPLY, ChatReply, ChatServiceError
from app.services.chat_session_service import (
    ChatSessionDeletedError,
    ChatSessionNotFoundError,
    ChatSessionService,
    ChatValidationError,
)
from app.services.record_store import CHAT_MESSAGES, CHAT_SESSIONS
from tests.conftest import FakeStore

USER = "10000000-0000-0000-0000-000000000001"


def _chat(reply: str = "There are 12 engineers.", tokens: int = 30, title: str = "Engineer headcount"):
    chat = MagicMock()
    chat.generate_reply = AsyncMock(return_value=ChatReply(content=reply, tokens=tokens))
    chat.generate_title = AsyncMock(return_value=title)
    return chat


def _service(store: FakeStore | None = None, chat=None) -> ChatSessionService:
    return ChatSessionService(store=store or FakeStore(), chat=chat or _chat())


@pytest.mark.anyio
async def test_create_session_defaults_title():
    store = FakeStore()
    session = await _service(store).create_session(USER)

    assert session.title == "New Chat"
    assert session.user_id == USER
    assert session.messages == []
    assert store.data[CHAT_SESSIONS][0]["totalTokens"] == 0


@pytest.mark.anyio
async def test_list_sessions_scoped_and_excludes_deleted():
    store = FakeStore(
        {
            CHAT_SESSIONS: [
                {"id": "s1", "userId": USER, "title": "Budget", "updatedAt": "2024-01-01", "deletedAt": None},
                {"id": "s2", "userId": USER, "title": "Hiring", "updatedAt": "2024-02-01", "deletedAt": None},
                {"id": "s3", "userId": USER, "title": "Old", "updatedAt": "2024-03-01", "deletedAt": "2024-03-02"},
                {"id": "s4", "userId": "someone-else", "title": "Hiring", "updatedAt": "2024-04-01"},
            ],
            CHAT_MESSAGES: [
                {"id": "m1", "sessionId": "s2", "role": "user", "content": "hi", "createdAt": "2024-02-01T10:00"},
                {"id": "m2", "sessionId": "s2", "role": "assistant", "content": "hello", "createdAt": "2024-02-01T10:01"},
            ],
        }
    )
    service = _service(store)

    result = await service.list_sessions(USER)
    searched = await service.list_sessions(USER, search="hir")

    assert [s.id for s in result.sessions] == ["s2", "s1"]
    assert result.sessions[0].message_count == 2
    assert result.sessions[0].last_message == "hello"
    assert result.pagination.total_count == 2
    assert [s.id for s in searched.sessions] == ["s2"]


@pytest.mark.anyio
async def test_get_missing_and_deleted_sessions():
    store = FakeStore({CHAT_SESSIONS: [{"id": "gone", "userId": USER, "title": "x", "deletedAt": "2024-01-01"}]})
    service = _service(store)

    with pytest.raises(ChatSessionNotFoundError):
        await service.get_session("nope")
    with pytest.raises(ChatSessionDeletedError):
        await service.get_session("gone")
    with pytest.raises(ChatSessionDeletedError):
        await service.delete_session("gone")


@pytest.mark.anyio
async def test_rename_and_soft_delete():
    store = FakeStore()
    service = _service(store)
    session = await service.create_session(USER, "Draft")

    renamed = await service.rename_session(session.id, "  Q3 planning ")
    await service.delete_session(session.id)

    assert renamed.title == "Q3 planning"
    assert store.data[CHAT_SESSIONS][0]["deletedAt"] is not None
    with pytest.raises(ChatValidationError):
        await service.rename_session(session.id, "   ")


class TestSendMessage:
    @pytest.mark.anyio
    async def test_first_message_generates_title_and_stores_both_messages(self):
        store = FakeStore()
        chat = _chat()
        service = _service(store, chat)
        session = await service.create_session(USER)

        result = await service.send_message(session.id, "How many engineers do we have?")

        assert result.user_message.content == "How many engineers do we have?"
        assert result.assistant_message.content == "There are 12 engineers."
        assert result.assistant_message.tokens == 30
        assert result.session_title == "Engineer headcount"
        saved = store.data[CHAT_SESSIONS][0]
        assert saved["title"] == "Engineer headcount"
        assert saved["totalTokens"] == 30
        assert [m["role"] for m in store.data[CHAT_MESSAGES]] == ["user", "assistant"]
        chat.generate_reply.assert_awaited_once_with(
            [{"role": "user", "content": "How many engineers do we have?"}]
        )

    @pytest.mark.anyio
    async def test_follow_up_sends_history_and_keeps_title(self):
        store = FakeStore()
        chat = _chat(tokens=5)
        service = _service(store, chat)
        session = await service.create_session(USER)
        await service.send_message(session.id, "first")

        result = await service.send_message(session.id, "second")

        assert result.session_title is None
        assert chat.generate_title.await_count == 1
        history = chat.generate_reply.call_args.args[0]
        assert [m["content"] for m in history] == ["first", "There are 12 engineers.", "second"]
        assert store.data[CHAT_SESSIONS][0]["totalTokens"] == 10

    @pytest.mark.anyio
    async def test_title_falls_back_to_message_prefix(self):
        chat = _chat()
        chat.generate_title = AsyncMock(side_effect=ChatServiceError("no model"))
        store = FakeStore()
        service = _service(store, chat)
        session = await service.create_session(USER)
        message = "Please list every engineer who joined the platform team after March"

        result = await service.send_message(session.id, message)

        assert result.session_title == message[:50]

    @pytest.mark.anyio
    async def test_llm_failure_stores_apology(self):
        chat = _chat()
        chat.generate_reply = AsyncMock(side_effect=ChatServiceError("down"))
        store = FakeStore()
        service = _service(store, chat)
        session = await service.create_session(USER, "Existing title")

        result = await service.send_message(session.id, "hello")

        assert result.assistant_message.content == FALLBACK_REPLY
        assert result.assistant_message.tokens == 0
        chat.generate_title.assert_not_awaited()

    @pytest.mark.anyio
    async def test_empty_content_is_rejected(self):
        with pytest.raises(ChatValidationError):
            await _service().send_message("s1", "   ")


def test_sessions_endpoint_create_returns_201(client):
    session = ChatSessionDetail(id="s1", user_id=USER, title="New Chat")
    with patch("app.api.v1.endpoints.chat.chat_session_service") as mock_service:
        mock_service.create_session = AsyncMock(return_value=session)
        response = client.post("/api/v1/chat/sessions", json={})

    assert response.status_code == 201
    assert response.json()["title"] == "New Chat"
    mock_service.create_session.assert_awaited_once_with(USER, None)


def test_sessions_endpoint_deleted_is_410(client):
    with patch("app.api.v1.endpoints.chat.chat_session_service") as mock_service:
        mock_service.get_session = AsyncMock(side_effect=ChatSessionDeletedError("s1"))
        response = client.get("/api/v1/chat/sessions/s1")

    assert response.status_code == 410


def test_sessions_endpoint_missing_is_404(client):
    with patch("app.api.v1.endpoints.chat.chat_session_service") as mock_service:
        mock_service.send_message = AsyncMock(side_effect=ChatSessionNotFoundError("s1"))
        response = client.post("/api/v1/chat/sessions/s1/messages", json={"content": "hi"})

    assert response.status_code == 404


def test_sessions_endpoint_empty_message_is_400(client):
    with patch("app.api.v1.endpoints.chat.chat_session_service") as mock_service:
        mock_service.send_message = AsyncMock(side_effect=ChatValidationError("Message content is required"))
        response = client.post("/api/v1/chat/sessions/s1/messages", json={"content": " "})

    assert response.status_code == 400
    assert response.json()["detail"] == "Message content is required"
