"""Cache entry domain entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheEntryEntity:
    """Domain entity for a cached response.

    This is an internal representation used by services and stores.

    Attributes:
        response: The cached reply text
        created_at: When this entry was written (epoch milliseconds)
        ttl: Lifetime in milliseconds
    """

    response: str
    created_at: float
    ttl: int

    def is_valid(self, now: float) -> bool:
        """Return True while ``now`` is inside the entry's lifetime."""
        return now - self.created_at < self.ttl
