"""In-process implementation of ResponseStore.

The default backend: an insertion-ordered dict living for the lifetime of
the process. It satisfies the ResponseStore protocol.
"""

import logging
import threading
from collections import OrderedDict

from tutor_chat.entities import CacheEntryEntity

logger = logging.getLogger(__name__)


class MemoryResponseStore:
    """Bounded FIFO map guarded by a lock.

    This class satisfies the ResponseStore protocol through structural
    typing - no explicit inheritance needed.

    Eviction removes the oldest-inserted entry (not the least recently
    read). Overwriting a key counts as a fresh insertion and moves it to
    the back of the queue.
    """

    def __init__(self, capacity: int = 1000) -> None:
        """Initialize the store.

        Args:
            capacity: Maximum number of entries held at once.
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._entries: OrderedDict[str, CacheEntryEntity] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def kind(self) -> str:
        return "Memory"

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: str) -> CacheEntryEntity | None:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, entry: CacheEntryEntity) -> str | None:
        evicted: str | None = None
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            elif len(self._entries) >= self._capacity:
                evicted, _ = self._entries.popitem(last=False)
            self._entries[key] = entry
        if evicted is not None:
            logger.debug("Evicted oldest cache entry: %s", evicted)
        return evicted

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def purge_expired(self, now: float) -> int:
        # Snapshot first so the lock is only held per entry, not for the whole sweep.
        with self._lock:
            keys = list(self._entries)

        removed = 0
        for key in keys:
            with self._lock:
                entry = self._entries.get(key)
                if entry is not None and not entry.is_valid(now):
                    del self._entries[key]
                    removed += 1
        return removed

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self) -> list[str]:
        """Keys in insertion order (oldest first)."""
        with self._lock:
            return list(self._entries)
