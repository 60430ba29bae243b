"""Redis implementation of ResponseStore.

Lets several worker processes share one response cache. It satisfies the
ResponseStore protocol with the same FIFO/TTL semantics as the in-memory
store:

- each entry is a hash ``<prefix>:entry:<sha256(fingerprint)>`` with a
  ``PEXPIRE`` matching its ttl
- insertion order is a sorted set ``<prefix>:order`` scored by a counter at
  ``<prefix>:seq``, so the oldest entry is the lowest score
- ``put`` reads, evicts and inserts inside one WATCH/MULTI transaction, so
  concurrent writers never push the order set past capacity
"""

import hashlib
import logging

import redis

from tutor_chat.config import get_redis_client, settings
from tutor_chat.entities import CacheEntryEntity

logger = logging.getLogger(__name__)


class RedisResponseStore:
    """Redis-backed bounded FIFO map.

    This class satisfies the ResponseStore protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        capacity: int | None = None,
        prefix: str | None = None,
    ) -> None:
        """Initialize the Redis response store.

        Args:
            redis_client: Redis client instance (``decode_responses=True``).
                If None, creates default.
            capacity: Maximum number of entries. Defaults to settings.
            prefix: Key namespace. Defaults to settings.
        """
        self._client = redis_client or get_redis_client()
        self._capacity = capacity or settings.cache_max_size
        self._prefix = prefix or settings.cache_key_prefix
        self._order_key = f"{self._prefix}:order"
        self._seq_key = f"{self._prefix}:seq"

    @property
    def kind(self) -> str:
        return "Redis"

    @property
    def capacity(self) -> int:
        return self._capacity

    @staticmethod
    def _digest(key: str) -> str:
        return hashlib.sha256(key.encode("utf-8")).hexdigest()

    def _entry_key(self, digest: str) -> str:
        return f"{self._prefix}:entry:{digest}"

    @staticmethod
    def _parse(data: dict) -> CacheEntryEntity | None:
        try:
            return CacheEntryEntity(
                response=data["response"],
                created_at=float(data["created_at"]),
                ttl=int(data["ttl"]),
            )
        except (KeyError, ValueError):
            return None

    def get(self, key: str) -> CacheEntryEntity | None:
        digest = self._digest(key)
        data = self._client.hgetall(self._entry_key(digest))
        if not data:
            # Redis already expired the hash; drop the dangling order member.
            self._client.zrem(self._order_key, digest)
            return None
        return self._parse(data)

    def put(self, key: str, entry: CacheEntryEntity) -> str | None:
        digest = self._digest(key)
        entry_key = self._entry_key(digest)

        def insert(pipe: redis.client.Pipeline) -> str | None:
            # Immediate mode until multi(): reads see the watched keys.
            evicted: list[str] = []
            if pipe.zscore(self._order_key, digest) is None:
                overflow = pipe.zcard(self._order_key) - self._capacity + 1
                if overflow > 0:
                    evicted = list(pipe.zrange(self._order_key, 0, overflow - 1))
            sequence = int(pipe.get(self._seq_key) or 0) + 1

            pipe.multi()
            if evicted:
                pipe.zrem(self._order_key, *evicted)
                pipe.delete(*(self._entry_key(member) for member in evicted))
            pipe.set(self._seq_key, sequence)
            pipe.hset(
                entry_key,
                mapping={
                    "response": entry.response,
                    "created_at": str(entry.created_at),
                    "ttl": str(entry.ttl),
                },
            )
            pipe.pexpire(entry_key, entry.ttl)
            pipe.zadd(self._order_key, {digest: sequence})
            return evicted[0] if evicted else None

        # WATCH retries the whole read-evict-insert if another writer touched
        # the order set or sequence in between.
        evicted: str | None = self._client.transaction(
            insert, self._order_key, self._seq_key, value_from_callable=True
        )  # type: ignore[assignment]

        if evicted is not None:
            logger.debug("Evicted oldest cache entry: %s", evicted)
        return evicted

    def delete(self, key: str) -> bool:
        digest = self._digest(key)
        removed: int = self._client.delete(self._entry_key(digest))  # type: ignore[assignment]
        self._client.zrem(self._order_key, digest)
        return removed > 0

    def purge_expired(self, now: float) -> int:
        removed = 0
        for digest in self._client.zrange(self._order_key, 0, -1):
            entry_key = self._entry_key(digest)
            entry = self._parse(self._client.hgetall(entry_key) or {})
            if entry is None or not entry.is_valid(now):
                self._client.delete(entry_key)
                self._client.zrem(self._order_key, digest)
                removed += 1
        return removed

    def count(self) -> int:
        result: int = self._client.zcard(self._order_key)  # type: ignore[assignment]
        return result

    def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False
