"""
Tests for the response cache service.
"""

from tutor_chat.entities import ChatTurn
from tutor_chat.repositories import MemoryResponseStore
from tutor_chat.services import COMMON_QUESTIONS, ResponseCache


def turns(*contents: str) -> list[ChatTurn]:
    return [ChatTurn(role="user" if i % 2 == 0 else "assistant", content=c) for i, c in enumerate(contents)]


class BrokenStore:
    """Store whose every call fails."""

    kind = "Broken"
    capacity = 1

    def get(self, key):
        raise RuntimeError("store down")

    def put(self, key, entry):
        raise RuntimeError("store down")

    def delete(self, key):
        raise RuntimeError("store down")

    def purge_expired(self, now):
        raise RuntimeError("store down")

    def count(self):
        return 0


def test_key_normalizes_case_and_whitespace():
    """Test message and history are lowercased and trimmed."""
    history = turns("  Hello ", "WORLD")
    assert ResponseCache.key("  Annyeong  ", history) == "annyeong|hello|world"


def test_key_without_history_ends_with_separator():
    """Test an empty history still produces the trailing separator."""
    assert ResponseCache.key("안녕하세요") == "안녕하세요|"


def test_key_uses_only_last_three_turns():
    """Test histories differing only before the last three turns share a key."""
    a = turns("old one", "x", "y", "z")
    b = turns("different", "x", "y", "z")
    assert ResponseCache.key("q", a) == ResponseCache.key("q", b)
    assert ResponseCache.key("q", a) == "q|x|y|z"


def test_key_separator_is_not_escaped():
    """Test a piped message can collide with a different message/history split."""
    assert ResponseCache.key("a|b") == "a|b|"
    assert ResponseCache.key("a", turns("b|")) == "a|b|"


def test_get_miss_returns_none(cache):
    """Test lookup of an unknown message."""
    assert cache.get("처음 보는 질문") is None


def test_set_then_get_with_normalized_message(cache):
    """Test a stored reply is found for the same normalized message."""
    history = turns("저는 학생이에요")
    cache.set("뭐 해요?", "공부해요.", history)
    assert cache.get("  뭐 해요? ", history) == "공부해요."


def test_different_history_misses(cache):
    """Test the same message with different recent history misses."""
    cache.set("질문", "답", turns("a"))
    assert cache.get("질문", turns("b")) is None


def test_entry_valid_until_ttl_elapses(cache, clock, store):
    """Test expiry happens exactly when elapsed time reaches the ttl."""
    cache.set("q", "a", ttl_ms=1000)
    clock.advance(999)
    assert cache.get("q") == "a"
    clock.advance(1)
    assert cache.get("q") is None
    assert store.count() == 0


def test_expired_lookup_removes_entry(cache, clock, store):
    """Test an expired entry is deleted on lookup."""
    cache.set("q", "a")
    clock.advance(3_600_000)
    assert cache.get("q") is None
    assert store.keys() == []


def test_fifo_eviction_removes_oldest_inserted(clock):
    """Test inserting at capacity evicts the oldest entry, not the least read."""
    store = MemoryResponseStore(capacity=3)
    cache = ResponseCache(store, ttl_ms=60_000, clock=clock)
    for name in ("one", "two", "three"):
        cache.set(name, name.upper())

    # Reading "one" must not protect it.
    assert cache.get("one") == "ONE"
    cache.set("four", "FOUR")

    assert store.count() == 3
    assert cache.get("one") is None
    assert cache.get("two") == "TWO"
    assert cache.get("four") == "FOUR"


def test_overwrite_does_not_evict(clock):
    """Test replacing an existing key at capacity keeps every entry."""
    store = MemoryResponseStore(capacity=2)
    cache = ResponseCache(store, ttl_ms=60_000, clock=clock)
    cache.set("a", "1")
    cache.set("b", "2")
    cache.set("a", "3")

    assert store.count() == 2
    assert cache.get("a") == "3"
    assert cache.get("b") == "2"


def test_cleanup_removes_only_expired(cache, clock, store):
    """Test cleanup sweeps expired entries and keeps live ones."""
    cache.set("short", "x", ttl_ms=100)
    cache.set("long", "y", ttl_ms=10_000)
    clock.advance(500)

    assert cache.cleanup() == 1
    assert store.count() == 1
    assert cache.get("long") == "y"


def test_cleanup_is_idempotent(cache, clock):
    """Test a second sweep with no time passing removes nothing."""
    cache.set("short", "x", ttl_ms=100)
    clock.advance(200)
    assert cache.cleanup() == 1
    assert cache.cleanup() == 0


def test_seed_stores_common_questions(cache, clock):
    """Test seeded answers hit with an empty history."""
    count = cache.seed(COMMON_QUESTIONS, ttl_ms=86_400_000)

    assert count == len(COMMON_QUESTIONS)
    assert cache.stats() == {"size": len(COMMON_QUESTIONS), "kind": "Memory"}
    question, answer = COMMON_QUESTIONS[0]
    assert cache.get(question) == answer
    assert cache.get(question, turns("이전 대화")) is None

    clock.advance(86_400_000)
    assert cache.get(question) is None


def test_store_failures_are_swallowed(clock):
    """Test a failing store degrades to misses instead of raising."""
    cache = ResponseCache(BrokenStore(), ttl_ms=1000, clock=clock)
    cache.set("q", "a")
    assert cache.get("q") is None
    assert cache.stats() == {"size": 0, "kind": "Broken"}
