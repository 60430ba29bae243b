"""Service layer for business logic.

This layer contains the core business logic and orchestration.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from tutor_chat.repositories import MemoryResponseStore, OpenAIChatProvider
    from tutor_chat.services import ChatRelay, ResponseCache

    cache = ResponseCache(MemoryResponseStore(capacity=1000))
    relay = ChatRelay(cache=cache, provider=OpenAIChatProvider.create())
    ```
"""

from .auth_service import AuthGate, extract_bearer_token
from .chat_service import ChatRelay, build_prompt, format_event, validate_message
from .conversation_service import ConversationService
from .fallback import FallbackResponder
from .response_cache import COMMON_QUESTIONS, ResponseCache

__all__ = [
    "AuthGate",
    "ChatRelay",
    "ConversationService",
    "FallbackResponder",
    "ResponseCache",
    "COMMON_QUESTIONS",
    "build_prompt",
    "extract_bearer_token",
    "format_event",
    "validate_message",
]
