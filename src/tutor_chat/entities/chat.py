"""Chat domain entities."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ChatTurn:
    """One prior turn of the conversation as supplied by the client.

    Attributes:
        role: ``"user"`` or anything else (treated as the assistant)
        content: The turn's text
    """

    role: str
    content: str

    @property
    def provider_role(self) -> str:
        """Map onto the two-role schema the provider understands."""
        return "user" if self.role == "user" else "assistant"


@dataclass(frozen=True)
class Completion:
    """A whole (non-streamed) reply from the upstream provider."""

    content: str
    usage: dict[str, Any] | None = None


@dataclass(frozen=True)
class ChatReply:
    """Outcome of one non-streaming chat request.

    Attributes:
        response: The text shown to the user
        response_time: Elapsed milliseconds inside the relay
        cached: True when served from the response cache
        usage: Token usage reported by the provider, if any
        note: Explanatory note when a fallback reply was used
        error: The upstream error message when a fallback reply was used
    """

    response: str
    response_time: int
    cached: bool
    usage: dict[str, Any] | None = None
    note: str | None = None
    error: str | None = None

    @property
    def is_fallback(self) -> bool:
        return self.error is not None
