"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import ChatRequest, CreateMessageRequest, HistoryTurn
from .responses import (
    CacheStatsResponse,
    ChatResponse,
    ConversationListResponse,
    ConversationResponse,
    HealthCheckResponse,
    MessageListResponse,
    MessageResponse,
)

__all__ = [
    "ChatRequest",
    "CreateMessageRequest",
    "HistoryTurn",
    "ChatResponse",
    "CacheStatsResponse",
    "HealthCheckResponse",
    "ConversationListResponse",
    "ConversationResponse",
    "MessageListResponse",
    "MessageResponse",
]
