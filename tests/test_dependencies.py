"""
Tests for application wiring helpers.
"""

import asyncio
from dataclasses import replace

import pytest

from tutor_chat.api.dependencies import build_response_store, run_cache_cleanup
from tutor_chat.repositories import MemoryResponseStore


def test_memory_backend_uses_configured_capacity(test_settings):
    store = build_response_store(replace(test_settings, cache_max_size=25))
    assert isinstance(store, MemoryResponseStore)
    assert store.capacity == 25


@pytest.mark.asyncio
async def test_cleanup_task_sweeps_expired_entries(cache, clock, store):
    cache.set("short", "x", ttl_ms=100)
    cache.set("long", "y", ttl_ms=60_000)
    clock.advance(1000)

    task = asyncio.create_task(run_cache_cleanup(cache, 0.01))
    await asyncio.sleep(0.1)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert store.keys() == [cache.key("long")]
