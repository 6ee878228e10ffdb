"""Chat session and message models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    id: str
    session_id: str
    role: str
    content: str | None = None
    tokens: int = 0
    created_at: str | None = None


class ChatSessionSummary(BaseModel):
    id: str
    user_id: str
    title: str
    total_tokens: int = 0
    deleted_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    message_count: int = 0
    last_message: str | None = None
    last_message_at: str | None = None


class ChatSessionDetail(ChatSessionSummary):
    messages: list[ChatMessage] = []


class ChatSessionPagination(BaseModel):
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_more: bool


class ChatSessionList(BaseModel):
    sessions: list[ChatSessionSummary]
    pagination: ChatSessionPagination


class CreateSessionRequest(BaseModel):
    title: str | None = Field(default=None, max_length=200)


class RenameSessionRequest(BaseModel):
    title: str = Field(..., max_length=200)


class SendMessageRequest(BaseModel):
    content: str = Field(..., max_length=4000)


class SendMessageResponse(BaseModel):
    user_message: ChatMessage
    assistant_message: ChatMessage
    session_title: str | None = None
