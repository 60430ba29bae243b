"""Repository layer for data access.

This layer abstracts external dependencies (Redis, the LLM API, Supabase)
behind protocol-based interfaces. This enables:
- Easy swapping of implementations (memory -> Redis, OpenAI -> compatible APIs)
- Unit testing with fake implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from tutor_chat.protocols import AuthVerifier, ChatProvider, ConversationStore, ResponseStore

from .memory_store import MemoryResponseStore
from .openai_provider import OpenAIChatProvider
from .redis_repository import RedisResponseStore
from .supabase_repository import SupabaseRepository

__all__ = [
    "AuthVerifier",
    "ChatProvider",
    "ConversationStore",
    "ResponseStore",
    "MemoryResponseStore",
    "RedisResponseStore",
    "OpenAIChatProvider",
    "SupabaseRepository",
]
