from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core.config import Settings
from app.services.chat_service import (
    EMPTY_REPLY,
    MAX_TOOL_ROUNDS,
    SYSTEM_PROMPT,
    ChatService,
    ChatServiceError,
)


def _completion(content=None, tool_calls=None, total_tokens=10):
    response = MagicMock()
    response.usage.total_tokens = total_tokens
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    response.choices[0].message.tool_calls = tool_calls
    return response


def _tool_call(call_id: str, name: str, arguments: dict):
    call = MagicMock()
    call.id = call_id
    call.function.name = name
    call.function.arguments = json.dumps(arguments)
    return call


def _service(tools=None) -> ChatService:
    service = ChatService(tools=tools or MagicMock())
    service.initialized = True
    service.client = MagicMock()
    service.model = "gpt-4o"
    return service


class TestInitialize:
    @pytest.mark.anyio
    async def test_missing_credentials_stays_uninitialized(self):
        service = ChatService()
        await service.initialize(Settings(OPENAI_ENDPOINT="", OPENAI_API_KEY=""))
        assert service.initialized is False

    @pytest.mark.anyio
    async def test_creates_azure_client(self):
        settings = Settings(OPENAI_ENDPOINT="https://example.openai.azure.com", OPENAI_API_KEY="key")
        with patch("app.services.chat_service.AsyncAzureOpenAI") as mock_client:
            service = ChatService()
            await service.initialize(settings)

        assert service.initialized is True
        assert service.model == settings.OPENAI_CHAT_MODEL
        mock_client.assert_called_once_with(
            azure_endpoint="https://example.openai.azure.com",
            api_key="key",
            api_version=settings.OPENAI_API_VERSION,
        )

    @pytest.mark.anyio
    async def test_close_resets(self):
        service = _service()
        await service.close()
        assert service.initialized is False
        assert service.client is None


class TestGenerateReply:
    @pytest.mark.anyio
    async def test_not_initialized_raises(self):
        with pytest.raises(ChatServiceError, match="not initialized"):
            await ChatService().generate_reply([{"role": "user", "content": "hi"}])

    @pytest.mark.anyio
    async def test_plain_answer(self):
        service = _service()
        service.client.chat.completions.create = AsyncMock(return_value=_completion("Hello!", total_tokens=42))

        reply = await service.generate_reply([{"role": "user", "content": "hi"}])

        assert reply.content == "Hello!"
        assert reply.tokens == 42
        assert reply.tool_calls == 0
        messages = service.client.chat.completions.create.call_args.kwargs["messages"]
        assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert messages[-1] == {"role": "user", "content": "hi"}

    @pytest.mark.anyio
    async def test_executes_tool_calls_and_feeds_results_back(self):
        tools = MagicMock()
        tools.execute = AsyncMock(return_value={"success": True, "count": 1})
        service = _service(tools)
        call = _tool_call("call-1", "search_employees", {"query": "alex"})
        service.client.chat.completions.create = AsyncMock(
            side_effect=[_completion(tool_calls=[call], total_tokens=5), _completion("Found Alex.", total_tokens=7)]
        )

        reply = await service.generate_reply([{"role": "user", "content": "who is alex"}])

        assert reply.content == "Found Alex."
        assert reply.tokens == 12
        assert reply.tool_calls == 1
        tools.execute.assert_awaited_once_with("search_employees", '{"query": "alex"}')

        second_messages = service.client.chat.completions.create.call_args_list[1].kwargs["messages"]
        assert second_messages[-2]["role"] == "assistant"
        assert second_messages[-2]["tool_calls"][0]["id"] == "call-1"
        assert second_messages[-1] == {
            "role": "tool",
            "tool_call_id": "call-1",
            "content": json.dumps({"success": True, "count": 1}),
        }

    @pytest.mark.anyio
    async def test_stops_after_max_rounds(self):
        tools = MagicMock()
        tools.execute = AsyncMock(return_value={"success": True})
        service = _service(tools)
        call = _tool_call("call-x", "get_departments", {})
        service.client.chat.completions.create = AsyncMock(return_value=_completion(tool_calls=[call]))

        reply = await service.generate_reply([{"role": "user", "content": "loop"}])

        assert reply.content == EMPTY_REPLY
        assert service.client.chat.completions.create.await_count == MAX_TOOL_ROUNDS

    @pytest.mark.anyio
    async def test_api_error_is_wrapped(self):
        service = _service()
        service.client.chat.completions.create = AsyncMock(side_effect=RuntimeError("rate limited"))

        with pytest.raises(ChatServiceError, match="rate limited"):
            await service.generate_reply([{"role": "user", "content": "hi"}])


class TestGenerateTitle:
    @pytest.mark.anyio
    async def test_strips_quotes(self):
        service = _service()
        service.client.chat.completions.create = AsyncMock(return_value=_completion('"Engineering headcount"'))
        assert await service.generate_title("How many engineers do we have?") == "Engineering headcount"

    @pytest.mark.anyio
    async def test_empty_title_falls_back_to_default(self):
        service = _service()
        service.client.chat.completions.create = AsyncMock(return_value=_completion(""))
        assert await service.generate_title("hi") == "New Chat"
