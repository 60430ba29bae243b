"""Chat provider protocol.

Defines the interface for the upstream text-generation service.

Implementations can include:
- OpenAI chat completions (default)
- Any OpenAI-compatible endpoint (vLLM, Ollama's /v1, etc.)
"""

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

from tutor_chat.entities import Completion


@runtime_checkable
class ChatProvider(Protocol):
    """Protocol for upstream chat completion services.

    Both methods take provider-shaped messages
    (``[{"role": ..., "content": ...}, ...]``) and raise
    ``tutor_chat.errors.UpstreamError`` on any failure.
    """

    @property
    def model_name(self) -> str:
        """Return the name/identifier of the model."""
        ...

    async def complete(self, messages: list[dict[str, str]]) -> Completion:
        """Generate a whole reply.

        Args:
            messages: System prompt, history and the new user message

        Returns:
            The reply text and token usage
        """
        ...

    def stream(self, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        """Generate a reply incrementally.

        Args:
            messages: System prompt, history and the new user message

        Returns:
            Async iterator of text chunks in the order the provider emits them.
            Closing the iterator releases the underlying connection.
        """
        ...
