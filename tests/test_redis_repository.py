"""
Tests for the Redis response store against an in-process fake client.
"""

import redis

from tutor_chat.entities import CacheEntryEntity
from tutor_chat.protocols import ResponseStore
from tutor_chat.repositories import RedisResponseStore


class FakePipeline:
    """Transaction pipeline: commands run immediately until multi(), then queue."""

    def __init__(self, client: "FakeRedis", watches: tuple[str, ...]) -> None:
        self._client = client
        self._watched = {key: client.versions.get(key, 0) for key in watches}
        self._ops: list[tuple[str, tuple, dict]] = []
        self._queued = False

    def multi(self) -> None:
        self._queued = True

    def __getattr__(self, name):
        command = getattr(self._client, name)
        if not self._queued:
            return command

        def queue(*args, **kwargs):
            self._ops.append((name, args, kwargs))
            return self

        return queue

    def execute(self) -> list:
        if self._client.before_execute is not None:
            hook, self._client.before_execute = self._client.before_execute, None
            hook()
        if any(self._client.versions.get(key, 0) != version for key, version in self._watched.items()):
            raise redis.WatchError("Watched variable changed.")
        return [getattr(self._client, name)(*args, **kwargs) for name, args, kwargs in self._ops]


class FakeRedis:
    """Just enough of redis.Redis (decode_responses=True) for the store."""

    def __init__(self) -> None:
        self.hashes: dict[str, dict[str, str]] = {}
        self.zsets: dict[str, dict[str, float]] = {}
        self.counters: dict[str, int] = {}
        self.ttls: dict[str, int] = {}
        self.versions: dict[str, int] = {}
        self.transactions = 0
        self.before_execute = None
        self.down = False

    def _touch(self, key: str) -> None:
        self.versions[key] = self.versions.get(key, 0) + 1

    def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    def hset(self, key, mapping):
        self._touch(key)
        self.hashes.setdefault(key, {}).update(mapping)
        return len(mapping)

    def pexpire(self, key, ms):
        self.ttls[key] = ms
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            self._touch(key)
            removed += int(self.hashes.pop(key, None) is not None)
            self.ttls.pop(key, None)
        return removed

    def get(self, key):
        value = self.counters.get(key)
        return None if value is None else str(value)

    def set(self, key, value):
        self._touch(key)
        self.counters[key] = int(value)
        return True

    def zadd(self, key, mapping):
        self._touch(key)
        self.zsets.setdefault(key, {}).update(mapping)
        return len(mapping)

    def zrem(self, key, *members):
        self._touch(key)
        zset = self.zsets.get(key, {})
        return sum(zset.pop(m, None) is not None for m in members)

    def zscore(self, key, member):
        return self.zsets.get(key, {}).get(member)

    def zcard(self, key):
        return len(self.zsets.get(key, {}))

    def zrange(self, key, start, end):
        members = [m for m, _ in sorted(self.zsets.get(key, {}).items(), key=lambda item: item[1])]
        return members[start:] if end == -1 else members[start : end + 1]

    def transaction(self, func, *watches, value_from_callable=False):
        while True:
            self.transactions += 1
            pipe = FakePipeline(self, watches)
            value = func(pipe)
            try:
                results = pipe.execute()
            except redis.WatchError:
                continue
            return value if value_from_callable else results

    def ping(self):
        if self.down:
            raise redis.ConnectionError("connection refused")
        return True

    def expire_all(self):
        """Simulate Redis dropping every hash whose PEXPIRE elapsed."""
        for key in list(self.ttls):
            self.delete(key)


def entry(response: str = "r", created_at: float = 0.0, ttl: int = 1000) -> CacheEntryEntity:
    return CacheEntryEntity(response=response, created_at=created_at, ttl=ttl)


def make_store(capacity: int = 3) -> tuple[RedisResponseStore, FakeRedis]:
    client = FakeRedis()
    return RedisResponseStore(redis_client=client, capacity=capacity, prefix="test"), client


def test_satisfies_protocol():
    store, _ = make_store()
    assert isinstance(store, ResponseStore)
    assert store.kind == "Redis"
    assert store.capacity == 3


def test_put_and_get_roundtrip_sets_expiry():
    """Test the entry hash carries the entry's ttl as PEXPIRE."""
    store, client = make_store()
    store.put("안녕하세요|", entry("반가워요", created_at=10.0, ttl=5000))

    got = store.get("안녕하세요|")
    assert got == entry("반가워요", created_at=10.0, ttl=5000)
    assert list(client.ttls.values()) == [5000]
    assert all(key.startswith("test:entry:") for key in client.hashes)


def test_fifo_eviction_and_overwrite():
    """Test overwrite does not evict and the oldest insertion goes first."""
    store, client = make_store(capacity=2)
    store.put("a", entry("1"))
    store.put("b", entry("2"))
    assert store.put("a", entry("3")) is None
    assert store.count() == 2

    evicted = store.put("c", entry("4"))
    assert evicted == RedisResponseStore._digest("b")
    assert store.get("b") is None
    assert store.get("a").response == "3"
    assert store.count() == 2
    assert len(client.hashes) == 2


def test_concurrent_writers_share_capacity():
    """Test two stores on one server never exceed capacity when their writes interleave."""
    client = FakeRedis()
    first = RedisResponseStore(redis_client=client, capacity=1, prefix="test")
    second = RedisResponseStore(redis_client=client, capacity=1, prefix="test")

    # The second writer commits between the first writer's reads and its EXEC.
    client.before_execute = lambda: second.put("b", entry("2"))
    evicted = first.put("a", entry("1"))

    assert evicted == RedisResponseStore._digest("b")
    assert first.count() == 1
    assert second.get("b") is None
    assert second.get("a").response == "1"
    assert len(client.hashes) == 1
    # first attempt, the nested write, and the retry
    assert client.transactions == 3


def test_interleaved_overwrite_does_not_evict():
    client = FakeRedis()
    first = RedisResponseStore(redis_client=client, capacity=2, prefix="test")
    second = RedisResponseStore(redis_client=client, capacity=2, prefix="test")
    first.put("a", entry("1"))

    client.before_execute = lambda: second.put("b", entry("2"))
    assert first.put("a", entry("3")) is None

    assert first.count() == 2
    assert first.get("a").response == "3"
    assert first.get("b").response == "2"


def test_get_drops_order_member_when_hash_expired():
    """Test a hash removed by Redis expiry also leaves the order set."""
    store, client = make_store()
    store.put("a", entry())
    client.expire_all()

    assert store.get("a") is None
    assert store.count() == 0


def test_delete():
    store, _ = make_store()
    store.put("a", entry())
    assert store.delete("a") is True
    assert store.delete("a") is False
    assert store.count() == 0


def test_purge_expired():
    store, _ = make_store()
    store.put("old", entry(created_at=0, ttl=100))
    store.put("new", entry(created_at=0, ttl=10_000))

    assert store.purge_expired(now=500) == 1
    assert store.get("new") is not None
    assert store.count() == 1
    assert store.purge_expired(now=500) == 0


def test_health_check():
    store, client = make_store()
    assert store.health_check() is True
    client.down = True
    assert store.health_check() is False
