"""Response store protocol.

Defines the interface for the storage behind the response cache: a bounded,
insertion-ordered map from fingerprint to cache entry.

Implementations:
- In-process ordered dict (default)
- Redis (shared across workers)
"""

from typing import Protocol, runtime_checkable

from tutor_chat.entities import CacheEntryEntity


@runtime_checkable
class ResponseStore(Protocol):
    """Protocol for response cache storage backends.

    Stores know nothing about fingerprints or TTL defaults; they keep
    entries in insertion order and evict the oldest one when full.
    """

    @property
    def kind(self) -> str:
        """Human-readable backend name reported by health checks."""
        ...

    @property
    def capacity(self) -> int:
        """Maximum number of entries held at once."""
        ...

    def get(self, key: str) -> CacheEntryEntity | None:
        """Return the stored entry, valid or not, or None if absent."""
        ...

    def put(self, key: str, entry: CacheEntryEntity) -> str | None:
        """Insert or overwrite an entry.

        When ``key`` is new and the store is at capacity, the oldest-inserted
        entry is evicted first.

        Returns:
            The evicted key, if any
        """
        ...

    def delete(self, key: str) -> bool:
        """Remove an entry.

        Returns:
            True if an entry was removed
        """
        ...

    def purge_expired(self, now: float) -> int:
        """Remove every entry that is no longer valid at ``now``.

        Returns:
            Number of entries removed
        """
        ...

    def count(self) -> int:
        """Number of entries currently held (expired ones included)."""
        ...
