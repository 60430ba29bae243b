"""Response cache for exact-repeat chat questions.

Maps a normalized fingerprint of (message, recent history) to a previously
generated reply. Storage, capacity and eviction live behind the
ResponseStore protocol; this service owns fingerprinting, TTL policy,
lazy expiry and seeding.
"""

import logging
import time
from collections.abc import Callable, Iterable, Sequence

from tutor_chat.config import settings
from tutor_chat.entities import CacheEntryEntity, ChatTurn
from tutor_chat.protocols import ResponseStore

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "|"
HISTORY_TURNS = 3

# Pre-warmed answers for the questions learners ask most often.
COMMON_QUESTIONS: tuple[tuple[str, str], ...] = (
    (
        "안녕하세요",
        "안녕하세요! 한국어 학습을 도와드릴게요. 궁금한 점이 있으시면 언제든 물어보세요! 😊",
    ),
    (
        "감사합니다",
        "천만에요! 도움이 되어서 기뻐요. 더 궁금한 점이 있으시면 언제든 말씀해주세요! 🌟",
    ),
    (
        "한국어 어렵다",
        "한국어가 어려우시군요! 하지만 걱정하지 마세요. 차근차근 배우시면 분명히 실력이 늘 거예요. "
        "꾸준히 연습하시고, 궁금한 점이 있으시면 언제든 물어보세요! 💪",
    ),
    (
        "문법",
        "한국어 문법에 대해 궁금하시군요! 한국어 문법의 핵심을 알려드릴게요:\n\n"
        "📝 기본 문장 구조: 주어 + 목적어 + 동사\n"
        "📝 존댓말: 문장 끝에 '~요', '~습니다' 사용\n"
        "📝 조사: '은/는', '이/가', '을/를' 등\n\n"
        "구체적인 문법 질문이 있으시면 언제든 물어보세요! 😊",
    ),
)


def _now_ms() -> float:
    return time.time() * 1000


class ResponseCache:
    """Fingerprint-keyed reply cache with TTL and FIFO eviction.

    Example:
        ```python
        cache = ResponseCache(MemoryResponseStore(capacity=1000))
        cache.seed(COMMON_QUESTIONS, ttl_ms=86_400_000)

        cache.set("뭐 해요?", "공부해요.", history)
        cache.get("  뭐 해요? ", history)  # "공부해요."
        ```
    """

    def __init__(
        self,
        store: ResponseStore,
        ttl_ms: int | None = None,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        """Initialize the cache.

        Args:
            store: Storage backend (required).
            ttl_ms: Default entry lifetime in milliseconds. Defaults to settings.
            clock: Returns the current time in epoch milliseconds.
        """
        self._store = store
        self._ttl_ms = ttl_ms or settings.cache_ttl_ms
        self._clock = clock

    @staticmethod
    def key(message: str, history: Sequence[ChatTurn] = ()) -> str:
        """Build the fingerprint for a message and its recent history.

        Only the last three turns count, so histories differing only in older
        turns share a key. The separator is not escaped: text containing
        ``|`` can collide with a different split of the same characters.
        """
        clean_message = message.lower().strip()
        context = KEY_SEPARATOR.join(
            turn.content.lower().strip() for turn in list(history)[-HISTORY_TURNS:]
        )
        return f"{clean_message}{KEY_SEPARATOR}{context}"

    def get(self, message: str, history: Sequence[ChatTurn] = ()) -> str | None:
        """Return the cached reply, or None on a miss.

        Expired entries are removed on the way out. Store failures are
        logged and reported as a miss.
        """
        key = self.key(message, history)
        try:
            entry = self._store.get(key)
            if entry is None:
                return None
            if entry.is_valid(self._clock()):
                logger.debug("Cache hit: %s", key)
                return entry.response
            self._store.delete(key)
        except Exception:
            logger.exception("Cache lookup failed for %s", key)
        return None

    def set(
        self,
        message: str,
        response: str,
        history: Sequence[ChatTurn] = (),
        ttl_ms: int | None = None,
    ) -> None:
        """Store a reply, evicting the oldest entry if the store is full."""
        key = self.key(message, history)
        entry = CacheEntryEntity(
            response=response,
            created_at=self._clock(),
            ttl=ttl_ms or self._ttl_ms,
        )
        try:
            self._store.put(key, entry)
            logger.debug("Cache store: %s", key)
        except Exception:
            logger.exception("Cache store failed for %s", key)

    def cleanup(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed
        """
        removed = self._store.purge_expired(self._clock())
        if removed:
            logger.info("Cache cleanup removed %d expired entries", removed)
        return removed

    def seed(self, pairs: Iterable[tuple[str, str]], ttl_ms: int | None = None) -> int:
        """Pre-populate question/answer pairs with an empty history.

        Returns:
            Number of pairs stored
        """
        count = 0
        for question, answer in pairs:
            self.set(question, answer, (), ttl_ms=ttl_ms or settings.cache_seed_ttl_ms)
            count += 1
        logger.info("Response cache seeded with %d entries", count)
        return count

    def stats(self) -> dict[str, int | str]:
        """Read-only introspection for health reporting."""
        return {"size": self._store.count(), "kind": self._store.kind}

    @property
    def store(self) -> ResponseStore:
        """Get the underlying store (for testing)."""
        return self._store
