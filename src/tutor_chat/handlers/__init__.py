"""Handler layer for HTTP endpoints.

This layer contains the HTTP request/response handlers.
Handlers depend on services (business logic), not directly on repositories.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)
"""

from .chat_handler import ChatHandler
from .conversation_handler import ConversationHandler
from .http_errors import to_http_exception

__all__ = [
    "ChatHandler",
    "ConversationHandler",
    "to_http_exception",
]
