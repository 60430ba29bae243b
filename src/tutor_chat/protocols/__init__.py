"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (memory -> Redis, OpenAI -> any compatible API)
- Unit testing with fake implementations
- Clear separation of concerns

Usage:
    ```python
    from tutor_chat.protocols import ChatProvider, ResponseStore

    store: ResponseStore = MemoryResponseStore(capacity=1000)
    store: ResponseStore = RedisResponseStore(client, capacity=1000)
    ```
"""

from .chat_provider import ChatProvider
from .conversation_store import AuthVerifier, ConversationStore
from .response_store import ResponseStore

__all__ = [
    "AuthVerifier",
    "ChatProvider",
    "ConversationStore",
    "ResponseStore",
]
