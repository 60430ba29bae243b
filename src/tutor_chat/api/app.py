from typing import Any

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from tutor_chat.api.dependencies import (
    ChatHandlerDep,
    ConversationHandlerDep,
    IdentityDep,
    Persistence,
    build_lifespan,
)
from tutor_chat.api.middleware import RequestTimingMiddleware
from tutor_chat.config import Settings, settings
from tutor_chat.dto import (
    ChatRequest,
    ChatResponse,
    ConversationListResponse,
    ConversationResponse,
    CreateMessageRequest,
    HealthCheckResponse,
    MessageListResponse,
    MessageResponse,
)
from tutor_chat.protocols import ChatProvider, ResponseStore

API_TITLE = "Korean Tutor Chat API"
API_VERSION = "1.0.0"

router = APIRouter()


@router.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "message": "한국어 학습 챗봇 API 서버",
        "version": API_VERSION,
        "status": "running",
        "endpoints": {
            "chat": "/api/chat",
            "stream": "/api/chat/stream",
            "conversations": "/api/conversations",
            "messages": "/api/messages",
            "health": "/health",
            "docs": "/docs",
        },
    }


@router.get("/health", response_model=HealthCheckResponse)
async def health(handler: ChatHandlerDep) -> HealthCheckResponse:
    """Liveness probe with response cache introspection."""
    return await handler.health_check()


@router.post("/api/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(body: ChatRequest, identity: IdentityDep, handler: ChatHandlerDep) -> ChatResponse:
    """
    Answer one message in a single response.

    Upstream failures still return 200 with a fallback reply; ``note`` and
    ``error`` are set in that case.
    """
    return await handler.chat(body, identity)


@router.post("/api/chat/stream")
async def chat_stream(
    body: ChatRequest,
    request: Request,
    identity: IdentityDep,
    handler: ChatHandlerDep,
) -> StreamingResponse:
    """Answer one message as a text/event-stream of content events."""
    return await handler.stream_chat(body, identity, request.is_disconnected)


@router.get("/api/conversations", response_model=ConversationListResponse)
async def list_conversations(identity: IdentityDep, handler: ConversationHandlerDep) -> ConversationListResponse:
    """List the caller's conversations, newest first."""
    return await handler.list_conversations(identity)


@router.post("/api/conversations", response_model=ConversationResponse)
async def create_conversation(identity: IdentityDep, handler: ConversationHandlerDep) -> ConversationResponse:
    """Create a conversation owned by the caller."""
    return await handler.create_conversation(identity)


@router.get("/api/conversations/{conversation_id}/messages", response_model=MessageListResponse)
async def list_messages(
    conversation_id: str,
    identity: IdentityDep,
    handler: ConversationHandlerDep,
) -> MessageListResponse:
    """List a conversation's messages, oldest first."""
    return await handler.list_messages(identity, conversation_id)


@router.post("/api/messages", response_model=MessageResponse)
async def create_message(
    body: CreateMessageRequest,
    identity: IdentityDep,
    handler: ConversationHandlerDep,
) -> MessageResponse:
    """Append a message to one of the caller's conversations."""
    return await handler.create_message(identity, body)


async def handle_malformed_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report unparseable bodies with the same 400 shape as other validation errors."""
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}"
        for error in exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": {
                "error": "Malformed request body",
                "kind": "validation",
                "reason": "malformed",
                "details": details,
            }
        },
    )


def create_app(
    config: Settings | None = None,
    *,
    chat_provider: ChatProvider | None = None,
    persistence: Persistence | None = None,
    response_store: ResponseStore | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Settings to run with. Defaults to the environment settings.
        chat_provider: Upstream provider; built from config when omitted.
        persistence: Auth verifier and conversation store; built from config when omitted.
        response_store: Cache backend; built from config when omitted.

    Returns:
        The configured application.
    """
    config = config or settings

    app = FastAPI(
        title=API_TITLE,
        description="Korean-language tutoring chat relay with response caching",
        version=API_VERSION,
        lifespan=build_lifespan(config, chat_provider, persistence, response_store),
    )

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestTimingMiddleware)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_malformed_request)  # type: ignore[arg-type]
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tutor_chat.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
