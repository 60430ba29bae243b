"""Request DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tutor_chat.entities import ChatTurn


class HistoryTurn(BaseModel):
    """One prior turn supplied by the client."""

    role: str = Field("user", description="'user' or 'assistant'; anything else is treated as assistant")
    content: str = Field(..., description="The turn's text")

    def to_entity(self) -> ChatTurn:
        return ChatTurn(role=self.role, content=self.content)


class ChatRequest(BaseModel):
    """Request DTO for both chat endpoints.

    ``message`` is untyped here; the relay validates it so that
    a bad value gets a structured 400 reason instead of a schema error.
    """

    model_config = ConfigDict(populate_by_name=True)

    message: Any = Field(None, description="The user's message (non-empty, at most 1000 characters)")
    conversation_history: list[HistoryTurn] = Field(
        default_factory=list,
        alias="conversationHistory",
        description="Prior turns, oldest first",
    )
    conversation_id: str | None = Field(
        None,
        alias="conversationId",
        description="Conversation to save the exchange into (authenticated callers only)",
    )

    def history(self) -> list[ChatTurn]:
        return [turn.to_entity() for turn in self.conversation_history]


class CreateMessageRequest(BaseModel):
    """Request DTO for POST /api/messages.

    Fields are optional at the schema level so a missing one is reported
    with the endpoint's own 400 message.
    """

    conversation_id: str | None = Field(None, description="Owning conversation id")
    role: str | None = Field(None, description="'user' or 'assistant'")
    content: str | None = Field(None, description="Message text")
