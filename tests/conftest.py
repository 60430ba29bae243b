"""Shared fixtures."""

import pytest
from fakes import FakeChatProvider, FakeClock, FakePersistence

from tutor_chat.config import Settings
from tutor_chat.repositories import MemoryResponseStore
from tutor_chat.services import ResponseCache


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryResponseStore:
    return MemoryResponseStore(capacity=1000)


@pytest.fixture
def cache(store: MemoryResponseStore, clock: FakeClock) -> ResponseCache:
    return ResponseCache(store, ttl_ms=3_600_000, clock=clock)


@pytest.fixture
def provider() -> FakeChatProvider:
    return FakeChatProvider()


@pytest.fixture
def persistence() -> FakePersistence:
    return FakePersistence()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        openai_api_key="test-key",
        supabase_url="https://project.supabase.co",
        supabase_anon_key="anon-key",
        cache_backend="memory",
        cache_ttl_ms=3_600_000,
        cache_seed_ttl_ms=86_400_000,
        cache_max_size=1000,
        cache_cleanup_interval=0,
        stream_timeout=5,
        fallback_chunk_delay=0,
        cors_origins=("http://localhost:5173",),
        log_level="INFO",
    )
