"""HTTP handlers for chat operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
"""

import logging
from datetime import datetime, timezone

from fastapi.responses import StreamingResponse

from tutor_chat.dto import CacheStatsResponse, ChatRequest, ChatResponse, HealthCheckResponse
from tutor_chat.entities import Identity
from tutor_chat.errors import InternalError, ValidationError
from tutor_chat.services import ChatRelay
from tutor_chat.services.chat_service import DisconnectCheck

from .http_errors import to_http_exception

logger = logging.getLogger(__name__)

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class ChatHandler:
    """HTTP handlers for chat operations.

    This handler delegates business logic to ChatRelay
    and handles HTTP-specific concerns like:
    - Converting entities to DTOs
    - Setting appropriate status codes
    - Error handling and responses

    Example:
        ```python
        handler = ChatHandler(relay=relay)

        @app.post("/api/chat", response_model=ChatResponse)
        async def chat(request: ChatRequest, identity: IdentityDep):
            return await handler.chat(request, identity)
        ```
    """

    def __init__(self, relay: ChatRelay) -> None:
        """Initialize the chat handler.

        Args:
            relay: The chat relay for business logic (required).
        """
        self._relay = relay

    async def chat(self, request: ChatRequest, identity: Identity) -> ChatResponse:
        """Handle POST /api/chat requests.

        Args:
            request: The chat request DTO
            identity: Caller identity resolved by the auth gate

        Returns:
            ChatResponse with the reply (possibly cached or a fallback)

        Raises:
            HTTPException: 400 on invalid input, 500 on unexpected failure
        """
        try:
            reply = await self._relay.chat(
                request.message,
                request.history(),
                identity,
                request.conversation_id,
            )
        except ValidationError as e:
            raise to_http_exception(e) from e
        except Exception as e:
            logger.exception("Chat request failed")
            raise to_http_exception(InternalError(str(e))) from e

        return ChatResponse(
            response=reply.response,
            usage=reply.usage,
            response_time=reply.response_time,
            cached=reply.cached,
            note=reply.note,
            error=reply.error,
        )

    async def stream_chat(
        self,
        request: ChatRequest,
        identity: Identity,
        is_disconnected: DisconnectCheck | None = None,
    ) -> StreamingResponse:
        """Handle POST /api/chat/stream requests.

        Validation happens before the response starts, so bad input still
        gets a normal 400. After that every outcome is delivered as events.

        Raises:
            HTTPException: 400 on invalid input
        """
        try:
            events = self._relay.open_stream(
                request.message,
                request.history(),
                identity,
                request.conversation_id,
                is_disconnected,
            )
        except ValidationError as e:
            raise to_http_exception(e) from e

        return StreamingResponse(events, media_type="text/event-stream", headers=STREAM_HEADERS)

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        stats = self._relay.cache.stats()
        return HealthCheckResponse(
            status="OK",
            message="Backend server is running",
            timestamp=datetime.now(timezone.utc).isoformat(),
            cache=CacheStatsResponse(size=int(stats["size"]), kind=str(stats["kind"])),
        )
