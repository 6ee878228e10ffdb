from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from openai import AsyncAzureOpenAI

from app.core.config import Settings
from app.services.chat_tools import TOOL_DEFINITIONS, ChatTools, chat_tools

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an HR assistant for the Echelon HR information system. Your task:\n"
    "1. Answer questions about employees, teams, departments and the reporting structure.\n"
    "2. Use the provided tools to look up organisational data; never invent people, titles or numbers.\n"
    "3. When a name is ambiguous, search first and ask which person is meant if several match.\n"
    "4. Only mention salaries when the user explicitly asks for them.\n"
    "5. Keep answers concise and format lists and tables with Markdown."
)

TITLE_PROMPT = (
    "Generate a short, descriptive title (5 words or less) for a chat conversation based on this "
    "first message. Only respond with the title, no quotes or punctuation.\n\nUser's first message: "
)

FALLBACK_REPLY = "I apologize, but I encountered an error processing your message. Please try again."
EMPTY_REPLY = "I apologize, but I was unable to generate a response."
DEFAULT_TITLE = "New Chat"

MAX_TOOL_ROUNDS = 5
LLM_TEMPERATURE = 0.3
LLM_MAX_TOKENS = 2000


class ChatServiceError(Exception):
    pass


@dataclass
class ChatReply:
    content: str
    tokens: int = 0
    tool_calls: int = 0


class ChatService:
    def __init__(self, tools: ChatTools | None = None) -> None:
        self.client: AsyncAzureOpenAI | None = None
        self.initialized = False
        self.model = ""
        self.tools = tools if tools is not None else chat_tools

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        if not settings.OPENAI_ENDPOINT or not settings.OPENAI_API_KEY:
            logger.warning("OpenAI credentials missing — ChatService not initialized")
            return

        self.client = AsyncAzureOpenAI(
            azure_endpoint=settings.OPENAI_ENDPOINT,
            api_key=settings.OPENAI_API_KEY,
            api_version=settings.OPENAI_API_VERSION,
        )
        self.model = settings.OPENAI_CHAT_MODEL
        self.initialized = True

    async def close(self) -> None:
        self.client = None
        self.initialized = False

    async def generate_reply(self, history: list[dict[str, str]]) -> ChatReply:
        """Run the tool-calling loop for a conversation and return the final answer.

        ``history`` holds ``{"role", "content"}`` dicts for user and assistant turns.
        Raises ``ChatServiceError`` when the model cannot be reached.
        """
        if not self.initialized or not self.client:
            raise ChatServiceError("ChatService not initialized")

        messages: list[dict[str, Any]] = [{"role": "system", "content": SYSTEM_PROMPT}]
        messages.extend({"role": m["role"], "content": m.get("content") or ""} for m in history)

        tokens = 0
        tool_calls = 0
        for _ in range(MAX_TOOL_ROUNDS):
            try:
                response = await self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,  # type: ignore[arg-type]
                    tools=TOOL_DEFINITIONS,  # type: ignore[arg-type]
                    tool_choice="auto",
                    temperature=LLM_TEMPERATURE,
                    max_tokens=LLM_MAX_TOKENS,
                )
            except Exception as e:
                raise ChatServiceError(f"Chat completion failed: {e}") from e

            if response.usage:
                tokens += response.usage.total_tokens or 0

            message = response.choices[0].message
            if not message.tool_calls:
                return ChatReply(content=message.content or EMPTY_REPLY, tokens=tokens, tool_calls=tool_calls)

            messages.append(
                {
                    "role": "assistant",
                    "content": message.content or "",
                    "tool_calls": [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {"name": call.function.name, "arguments": call.function.arguments},
                        }
                        for call in message.tool_calls
                    ],
                }
            )
            for call in message.tool_calls:
                tool_calls += 1
                logger.info("Chat tool call: %s(%s)", call.function.name, call.function.arguments)
                result = await self.tools.execute(call.function.name, call.function.arguments)
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": call.id,
                        "content": json.dumps(result, default=str),
                    }
                )

        logger.warning("Chat tool loop stopped after %d rounds", MAX_TOOL_ROUNDS)
        return ChatReply(content=EMPTY_REPLY, tokens=tokens, tool_calls=tool_calls)

    async def generate_title(self, first_message: str) -> str:
        if not self.initialized or not self.client:
            raise ChatServiceError("ChatService not initialized")

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": TITLE_PROMPT + first_message}],
            temperature=LLM_TEMPERATURE,
            max_tokens=20,
        )
        title = (response.choices[0].message.content or "").strip().strip('"')
        return title or DEFAULT_TITLE


chat_service = ChatService()
