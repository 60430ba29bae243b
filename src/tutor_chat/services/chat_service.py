"""Chat relay: cache check, upstream call, cache write, client response.

Per request the relay moves through

    RECEIVED -> VALIDATED -> CACHE_CHECK -> (CACHE_HIT | UPSTREAM_CALL)
             -> (UPSTREAM_OK | UPSTREAM_FAILED) -> RESPONDED

Upstream failures never reach the client as errors: the user gets a canned
reply from the FallbackResponder instead, and nothing is cached for that
request.

Streaming framing is one event per chunk::

    data: {"content": "...", "done": false}\\n\\n

ending with a ``done: true`` event.
"""

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from typing import Any

from tutor_chat.config import settings
from tutor_chat.entities import ANONYMOUS, ChatReply, ChatTurn, Identity
from tutor_chat.errors import UpstreamError, ValidationError
from tutor_chat.protocols import ChatProvider

from .conversation_service import ConversationService
from .fallback import FALLBACK_NOTE, FallbackResponder
from .response_cache import ResponseCache

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 1000
HISTORY_WINDOW = 10
STREAM_HISTORY_WINDOW = 8

SYSTEM_PROMPT = (
    "당신은 한국어를 배우는 학습자를 돕는 친절한 한국어 선생님입니다. "
    "학습자의 수준에 맞춰 쉽고 정확한 한국어로 답하고, 필요하면 문법과 어휘를 예문과 함께 설명하세요. "
    "학습자가 틀린 표현을 쓰면 부드럽게 고쳐 주고, 답변은 간결하게 유지하세요."
)

EMPTY_REPLY = "죄송해요, 응답을 생성할 수 없습니다."
STREAM_ERROR = "스트리밍 응답 중 오류가 발생했습니다."

DisconnectCheck = Callable[[], Awaitable[bool]]


def validate_message(value: object) -> str:
    """Check the raw ``message`` field of a chat request.

    Raises:
        ValidationError: reason ``missing``, ``wrong-type`` or ``too-long``
    """
    if value is None or value == "":
        raise ValidationError(
            "Valid message is required",
            reason="missing",
            details="Message must be a non-empty string",
        )
    if not isinstance(value, str):
        raise ValidationError(
            "Valid message is required",
            reason="wrong-type",
            details="Message must be a non-empty string",
        )
    if not value.strip():
        raise ValidationError(
            "Valid message is required",
            reason="missing",
            details="Message must be a non-empty string",
        )
    if len(value) > MAX_MESSAGE_LENGTH:
        raise ValidationError(
            "Message too long",
            reason="too-long",
            details=f"Message must be at most {MAX_MESSAGE_LENGTH} characters",
        )
    return value


def build_prompt(message: str, history: Sequence[ChatTurn], window: int) -> list[dict[str, str]]:
    """System instruction + the last ``window`` turns + the new message."""
    recent = list(history)[-window:] if window > 0 else []
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        *({"role": turn.provider_role, "content": turn.content} for turn in recent),
        {"role": "user", "content": message},
    ]


def format_event(payload: dict[str, Any]) -> str:
    """Frame one streaming event."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def _elapsed_ms(start: float) -> int:
    return round((time.perf_counter() - start) * 1000)


class ChatRelay:
    """Orchestrates cache, upstream provider and fallback for chat requests.

    Example:
        ```python
        relay = ChatRelay(cache=cache, provider=OpenAIChatProvider.create())

        reply = await relay.chat("문법 질문이 있어요", history)

        async for event in relay.open_stream("문법 질문이 있어요", history):
            await send(event)
        ```
    """

    def __init__(
        self,
        cache: ResponseCache,
        provider: ChatProvider,
        fallback: FallbackResponder | None = None,
        conversations: ConversationService | None = None,
        stream_timeout: float | None = None,
        fallback_chunk_delay: float | None = None,
    ) -> None:
        """Initialize the relay.

        Args:
            cache: Response cache (required).
            provider: Upstream chat provider (required).
            fallback: Canned replies for upstream failures.
            conversations: Used to save exchanges for authenticated callers.
            stream_timeout: Whole-stream deadline in seconds. Defaults to settings.
            fallback_chunk_delay: Pause between fallback words when streaming.
                Defaults to settings.
        """
        self._cache = cache
        self._provider = provider
        self._fallback = fallback or FallbackResponder()
        self._conversations = conversations
        self._pending_saves: set[asyncio.Task] = set()
        self._stream_timeout = stream_timeout if stream_timeout is not None else settings.stream_timeout
        self._fallback_chunk_delay = (
            fallback_chunk_delay if fallback_chunk_delay is not None else settings.fallback_chunk_delay
        )

    async def chat(
        self,
        message: object,
        history: Sequence[ChatTurn] = (),
        identity: Identity = ANONYMOUS,
        conversation_id: str | None = None,
    ) -> ChatReply:
        """Answer one message without streaming.

        Raises:
            ValidationError: If the message is missing, not a string or too long
        """
        text = validate_message(message)
        start = time.perf_counter()

        cached = self._cache.get(text, history)
        if cached is not None:
            reply = ChatReply(response=cached, response_time=_elapsed_ms(start), cached=True)
            logger.info("Cached reply served in %dms", reply.response_time)
            self._save(identity, conversation_id, text, cached)
            return reply

        messages = build_prompt(text, history, HISTORY_WINDOW)
        logger.info(
            "Upstream call start: message_length=%d history=%d model=%s",
            len(text),
            len(messages) - 2,
            self._provider.model_name,
        )

        try:
            completion = await self._provider.complete(messages)
        except UpstreamError as e:
            logger.error(
                "Upstream call failed: %s (status=%s, code=%s)",
                e.message,
                e.status_code,
                e.code,
            )
            return ChatReply(
                response=self._fallback.fallback(text),
                response_time=_elapsed_ms(start),
                cached=False,
                note=FALLBACK_NOTE,
                error=e.message,
            )

        response_time = _elapsed_ms(start)
        if completion.content:
            self._cache.set(text, completion.content, history)
        response = completion.content or EMPTY_REPLY

        logger.info(
            "Upstream call done in %dms: tokens=%s length=%d",
            response_time,
            (completion.usage or {}).get("total_tokens"),
            len(response),
        )
        self._save(identity, conversation_id, text, response)
        return ChatReply(
            response=response,
            response_time=response_time,
            cached=False,
            usage=completion.usage,
        )

    def open_stream(
        self,
        message: object,
        history: Sequence[ChatTurn] = (),
        identity: Identity = ANONYMOUS,
        conversation_id: str | None = None,
        is_disconnected: DisconnectCheck | None = None,
    ) -> AsyncIterator[str]:
        """Validate eagerly, then return the framed event stream.

        Raises:
            ValidationError: Before any event is produced
        """
        text = validate_message(message)
        return self._stream(text, history, identity, conversation_id, is_disconnected)

    async def _stream(
        self,
        message: str,
        history: Sequence[ChatTurn],
        identity: Identity,
        conversation_id: str | None,
        is_disconnected: DisconnectCheck | None,
    ) -> AsyncIterator[str]:
        start = time.perf_counter()
        parts: list[str] = []

        try:
            cached = self._cache.get(message, history)
            if cached is not None:
                yield format_event({"content": cached, "done": False})
                yield format_event(
                    {"content": "", "done": True, "cached": True, "responseTime": _elapsed_ms(start)}
                )
                self._save(identity, conversation_id, message, cached)
                return

            messages = build_prompt(message, history, STREAM_HISTORY_WINDOW)
            logger.info(
                "Upstream stream start: message_length=%d history=%d model=%s",
                len(message),
                len(messages) - 2,
                self._provider.model_name,
            )

            failure: UpstreamError | None = None
            loop = asyncio.get_running_loop()
            deadline = loop.time() + self._stream_timeout
            upstream = self._provider.stream(messages)
            try:
                async for chunk in upstream:
                    if is_disconnected is not None and await is_disconnected():
                        logger.info("Client disconnected after %d chunks, stream abandoned", len(parts))
                        return
                    if loop.time() > deadline:
                        raise UpstreamError(
                            f"Stream exceeded {self._stream_timeout:g}s deadline",
                            code="stream_timeout",
                        )
                    parts.append(chunk)
                    yield format_event({"content": chunk, "done": False})
            except UpstreamError as e:
                failure = e
            finally:
                aclose = getattr(upstream, "aclose", None)
                if aclose is not None:
                    await aclose()

            if failure is not None:
                logger.error(
                    "Upstream stream failed after %d chunks: %s (status=%s, code=%s)",
                    len(parts),
                    failure.message,
                    failure.status_code,
                    failure.code,
                )
                async for event in self._stream_fallback(message, failure, is_disconnected):
                    yield event
                return

            full_response = "".join(parts)
            if not full_response:
                yield format_event({"content": EMPTY_REPLY, "done": False})
            response_time = _elapsed_ms(start)
            yield format_event({"content": "", "done": True, "cached": False, "responseTime": response_time})
        except Exception:
            logger.exception("Streaming relay failed")
            yield format_event({"content": "", "done": True, "error": STREAM_ERROR})
            return

        # Only reached once the client has taken the terminal event.
        logger.info("Upstream stream done in %dms: length=%d", response_time, len(full_response))
        if full_response:
            self._cache.set(message, full_response, history)
        self._save(identity, conversation_id, message, full_response or EMPTY_REPLY)

    async def _stream_fallback(
        self,
        message: str,
        failure: UpstreamError,
        is_disconnected: DisconnectCheck | None,
    ) -> AsyncIterator[str]:
        words = self._fallback.fallback(message).split(" ")
        for index, word in enumerate(words):
            if is_disconnected is not None and await is_disconnected():
                return
            chunk = word if index == len(words) - 1 else f"{word} "
            yield format_event({"content": chunk, "done": False})
            if self._fallback_chunk_delay > 0:
                await asyncio.sleep(self._fallback_chunk_delay)
        yield format_event({"content": "", "done": True, "error": failure.message, "fallback": True})

    def _save(
        self,
        identity: Identity,
        conversation_id: str | None,
        user_text: str,
        reply_text: str,
    ) -> None:
        """Persist the exchange in the background; the reply never waits on it."""
        if self._conversations is None or not conversation_id:
            return
        task = asyncio.create_task(
            self._conversations.save_exchange(identity, conversation_id, user_text, reply_text)
        )
        self._pending_saves.add(task)
        task.add_done_callback(self._save_done)

    def _save_done(self, task: asyncio.Task) -> None:
        self._pending_saves.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Saving chat exchange failed", exc_info=task.exception())

    async def drain(self) -> None:
        """Wait for background exchange saves still in flight."""
        if self._pending_saves:
            await asyncio.gather(*self._pending_saves, return_exceptions=True)

    @property
    def pending_saves(self) -> int:
        return len(self._pending_saves)

    @property
    def cache(self) -> ResponseCache:
        return self._cache
