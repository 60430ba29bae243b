"""Tutor Chat - Korean tutoring chat relay with response caching.

This package provides a layered architecture for the chat backend:

Layers:
    - protocols: Interface contracts (ResponseStore, ChatProvider, ConversationStore)
    - repositories: Data access implementations (memory/Redis cache, OpenAI, Supabase)
    - services: Business logic (ResponseCache, ChatRelay, AuthGate, ...)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from tutor_chat.repositories import MemoryResponseStore, OpenAIChatProvider
    from tutor_chat.services import ChatRelay, ResponseCache

    cache = ResponseCache(MemoryResponseStore(capacity=1000))
    relay = ChatRelay(cache=cache, provider=OpenAIChatProvider.create())
    reply = await relay.chat("안녕하세요")
    ```

For HTTP API:
    ```python
    from tutor_chat.api.app import app, create_app
    ```
"""

from tutor_chat.config import Settings, get_redis_client, get_settings, settings
from tutor_chat.dto import ChatRequest, ChatResponse
from tutor_chat.entities import (
    ANONYMOUS,
    AnonymousIdentity,
    AuthenticatedIdentity,
    CacheEntryEntity,
    ChatReply,
    ChatTurn,
)
from tutor_chat.errors import AuthError, ChatError, PersistenceError, UpstreamError, ValidationError
from tutor_chat.handlers import ChatHandler, ConversationHandler
from tutor_chat.protocols import AuthVerifier, ChatProvider, ConversationStore, ResponseStore
from tutor_chat.repositories import (
    MemoryResponseStore,
    OpenAIChatProvider,
    RedisResponseStore,
    SupabaseRepository,
)
from tutor_chat.services import (
    AuthGate,
    ChatRelay,
    ConversationService,
    FallbackResponder,
    ResponseCache,
)

__all__ = [
    # Configuration
    "Settings",
    "settings",
    "get_settings",
    "get_redis_client",
    # Errors
    "ChatError",
    "ValidationError",
    "AuthError",
    "UpstreamError",
    "PersistenceError",
    # Protocols (interfaces)
    "ResponseStore",
    "ChatProvider",
    "AuthVerifier",
    "ConversationStore",
    # Services (business logic)
    "ResponseCache",
    "FallbackResponder",
    "ChatRelay",
    "AuthGate",
    "ConversationService",
    # Handlers (HTTP)
    "ChatHandler",
    "ConversationHandler",
    # Repositories (data access)
    "MemoryResponseStore",
    "RedisResponseStore",
    "OpenAIChatProvider",
    "SupabaseRepository",
    # Entities (domain models)
    "CacheEntryEntity",
    "ChatTurn",
    "ChatReply",
    "AuthenticatedIdentity",
    "AnonymousIdentity",
    "ANONYMOUS",
    # DTOs (API contracts)
    "ChatRequest",
    "ChatResponse",
]
