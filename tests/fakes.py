"""Fake collaborators shared by the test modules."""

import asyncio
import uuid
from collections.abc import AsyncIterator
from typing import Any

from tutor_chat.entities import Completion
from tutor_chat.errors import AuthError, PersistenceError, UpstreamError


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, now: float = 1_700_000_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeChatProvider:
    """In-memory ChatProvider recording every prompt it receives."""

    def __init__(
        self,
        reply: str = "좋은 질문이에요!",
        chunks: list[str] | None = None,
        error: UpstreamError | None = None,
        fail_after: int | None = None,
        usage: dict[str, Any] | None = None,
    ) -> None:
        self.reply = reply
        self.chunks = chunks if chunks is not None else ["좋은 ", "질문이에요!"]
        self.error = error
        self.fail_after = fail_after
        self.usage = usage if usage is not None else {"total_tokens": 42}
        self.calls: list[list[dict[str, str]]] = []
        self.stream_closed = False

    @property
    def model_name(self) -> str:
        return "fake-model"

    async def complete(self, messages: list[dict[str, str]]) -> Completion:
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return Completion(content=self.reply, usage=self.usage)

    async def stream(self, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        self.calls.append(messages)
        try:
            if self.error is not None and self.fail_after is None:
                raise self.error
            for index, chunk in enumerate(self.chunks):
                if self.fail_after is not None and index == self.fail_after:
                    raise self.error or UpstreamError("stream broke")
                yield chunk
        finally:
            self.stream_closed = True


class FakePersistence:
    """AuthVerifier + ConversationStore backed by plain lists."""

    def __init__(self, tokens: dict[str, str] | None = None) -> None:
        self.tokens = tokens if tokens is not None else {"good-token": "user-1"}
        self.conversations: list[dict[str, Any]] = []
        self.messages: list[dict[str, Any]] = []
        self.auth_error: AuthError | None = None
        self.write_error: PersistenceError | None = None
        self.read_error: PersistenceError | None = None
        self.write_delay = 0.0
        self.seen_tokens: list[str] = []

    async def get_user_id(self, access_token: str) -> str | None:
        if self.auth_error is not None:
            raise self.auth_error
        return self.tokens.get(access_token)

    async def list_conversations(self, user_id: str, access_token: str) -> list[dict[str, Any]]:
        self.seen_tokens.append(access_token)
        if self.read_error is not None:
            raise self.read_error
        return [c for c in reversed(self.conversations) if c["user_id"] == user_id]

    async def create_conversation(self, user_id: str, access_token: str) -> dict[str, Any]:
        self.seen_tokens.append(access_token)
        if self.write_error is not None:
            raise self.write_error
        conversation = {"id": str(uuid.uuid4()), "user_id": user_id}
        self.conversations.append(conversation)
        return conversation

    async def list_messages(
        self,
        conversation_id: str,
        user_id: str,
        access_token: str,
    ) -> list[dict[str, Any]]:
        self.seen_tokens.append(access_token)
        if self.read_error is not None:
            raise self.read_error
        return [
            m for m in self.messages if m["conversation_id"] == conversation_id and m["user_id"] == user_id
        ]

    async def create_message(
        self,
        conversation_id: str,
        user_id: str,
        role: str,
        content: str,
        access_token: str,
    ) -> dict[str, Any]:
        self.seen_tokens.append(access_token)
        if self.write_delay:
            await asyncio.sleep(self.write_delay)
        if self.write_error is not None:
            raise self.write_error
        message = {
            "id": str(uuid.uuid4()),
            "conversation_id": conversation_id,
            "user_id": user_id,
            "role": role,
            "content": content,
        }
        self.messages.append(message)
        return message


