"""Response DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChatResponse(BaseModel):
    """Response DTO for POST /api/chat."""

    model_config = ConfigDict(populate_by_name=True)

    response: str = Field(..., description="The reply shown to the user")
    usage: dict[str, Any] | None = Field(None, description="Token usage reported by the provider")
    response_time: int = Field(
        ...,
        alias="responseTime",
        description="Time spent producing the reply in milliseconds",
        ge=0,
    )
    cached: bool = Field(..., description="Whether the reply came from the response cache")
    note: str | None = Field(None, description="Set when a fallback reply replaced a failed upstream call")
    error: str | None = Field(None, description="The upstream error behind a fallback reply")


class CacheStatsResponse(BaseModel):
    """Response cache introspection."""

    size: int = Field(..., description="Number of entries currently held", ge=0)
    kind: str = Field(..., description="Storage backend: 'Memory' or 'Redis'")


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="'OK' while the process is serving")
    message: str = Field(..., description="Human-readable status message")
    timestamp: str = Field(..., description="Server time (ISO 8601, UTC)")
    cache: CacheStatsResponse


class ConversationListResponse(BaseModel):
    """Response DTO for GET /api/conversations."""

    conversations: list[dict[str, Any]] = Field(default_factory=list)


class ConversationResponse(BaseModel):
    """Response DTO for POST /api/conversations."""

    conversation: dict[str, Any]


class MessageListResponse(BaseModel):
    """Response DTO for GET /api/conversations/{id}/messages."""

    messages: list[dict[str, Any]] = Field(default_factory=list)


class MessageResponse(BaseModel):
    """Response DTO for POST /api/messages."""

    message: dict[str, Any]
