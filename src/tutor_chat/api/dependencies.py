"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services built explicitly in the lifespan and stored in app.state
    - Dependency functions retrieve from request.app.state
    - No module-level singletons; the cache lives exactly as long as the app
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Annotated, Protocol

from fastapi import Depends, FastAPI, Header, Request

from tutor_chat.config import Settings, configure_logging, get_redis_client
from tutor_chat.entities import Identity
from tutor_chat.handlers import ChatHandler, ConversationHandler
from tutor_chat.protocols import AuthVerifier, ChatProvider, ConversationStore, ResponseStore
from tutor_chat.repositories import (
    MemoryResponseStore,
    OpenAIChatProvider,
    RedisResponseStore,
    SupabaseRepository,
)
from tutor_chat.services import (
    COMMON_QUESTIONS,
    AuthGate,
    ChatRelay,
    ConversationService,
    FallbackResponder,
    ResponseCache,
)

logger = logging.getLogger(__name__)


class Persistence(AuthVerifier, ConversationStore, Protocol):
    """Type of the persistence collaborator: verifies tokens and stores records."""


def get_chat_handler(request: Request) -> ChatHandler:
    """Dependency injection for ChatHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "chat_handler", None)
    if handler is None:
        raise RuntimeError("ChatHandler not initialized. Check lifespan setup.")
    return handler


def get_conversation_handler(request: Request) -> ConversationHandler:
    """Dependency injection for ConversationHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "conversation_handler", None)
    if handler is None:
        raise RuntimeError("ConversationHandler not initialized. Check lifespan setup.")
    return handler


async def get_identity(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> Identity:
    """Resolve the caller and attach the identity to the request state.

    Never rejects: unusable tokens resolve to the anonymous identity.
    """
    gate: AuthGate | None = getattr(request.app.state, "auth_gate", None)
    if gate is None:
        raise RuntimeError("AuthGate not initialized. Check lifespan setup.")
    identity = await gate.authenticate(authorization)
    request.state.identity = identity
    return identity


def build_response_store(config: Settings) -> ResponseStore:
    """Create the configured response store backend."""
    if config.cache_backend == "redis":
        store = RedisResponseStore(
            redis_client=get_redis_client(config),
            capacity=config.cache_max_size,
            prefix=config.cache_key_prefix,
        )
        if not store.health_check():
            logger.warning("Redis at %s is unreachable; cache lookups will miss", config.redis_url)
        return store
    return MemoryResponseStore(capacity=config.cache_max_size)


async def run_cache_cleanup(cache: ResponseCache, interval: float) -> None:
    """Sweep expired cache entries every ``interval`` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            await asyncio.to_thread(cache.cleanup)
        except Exception:
            logger.exception("Cache cleanup sweep failed")


def build_lifespan(
    config: Settings,
    chat_provider: ChatProvider | None = None,
    persistence: Persistence | None = None,
    response_store: ResponseStore | None = None,
) -> Callable[[FastAPI], contextlib.AbstractAsyncContextManager[None]]:
    """Create the lifespan context manager for the FastAPI app.

    Collaborators passed in are used as-is (tests inject fakes); anything
    missing is built from ``config``, which then must carry the required
    external settings.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Initializes all layers and stores them in app.state.

        1. Repositories (provider, persistence, response store)
        2. Services (cache, relay, auth gate, conversations)
        3. Handlers (HTTP endpoints)
        4. Background cache cleanup task

        Cleanup:
            Cancels the sweep, closes owned HTTP clients and removes
            everything from app.state on shutdown
        """
        configure_logging(config.log_level)
        if chat_provider is None or persistence is None:
            config.require()

        provider = chat_provider or OpenAIChatProvider.create(config)
        supabase = persistence or SupabaseRepository.create(config)
        store = response_store or build_response_store(config)

        cache = ResponseCache(store, ttl_ms=config.cache_ttl_ms)
        cache.seed(COMMON_QUESTIONS, ttl_ms=config.cache_seed_ttl_ms)

        conversation_service = ConversationService(supabase)
        relay = ChatRelay(
            cache=cache,
            provider=provider,
            fallback=FallbackResponder(),
            conversations=conversation_service,
            stream_timeout=config.stream_timeout,
            fallback_chunk_delay=config.fallback_chunk_delay,
        )

        app.state.response_cache = cache
        app.state.chat_relay = relay
        app.state.auth_gate = AuthGate(supabase)
        app.state.chat_handler = ChatHandler(relay=relay)
        app.state.conversation_handler = ConversationHandler(conversation_service)

        cleanup_task: asyncio.Task | None = None
        if config.cache_cleanup_interval > 0:
            cleanup_task = asyncio.create_task(run_cache_cleanup(cache, config.cache_cleanup_interval))

        logger.info("Chat relay initialized (model=%s)", provider.model_name)
        logger.info("Response cache: %s", cache.stats())

        try:
            yield
        finally:
            await relay.drain()

            if cleanup_task is not None:
                cleanup_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await cleanup_task

            for owned, component in ((chat_provider is None, provider), (persistence is None, supabase)):
                close = getattr(component, "close", None)
                if owned and close is not None:
                    await close()

            del app.state.conversation_handler
            del app.state.chat_handler
            del app.state.auth_gate
            del app.state.chat_relay
            del app.state.response_cache
            logger.info("Chat relay shut down")

    return lifespan


# Type aliases for cleaner dependency injection
ChatHandlerDep = Annotated[ChatHandler, Depends(get_chat_handler)]
ConversationHandlerDep = Annotated[ConversationHandler, Depends(get_conversation_handler)]
IdentityDep = Annotated[Identity, Depends(get_identity)]
