#!/usr/bin/env python3
"""
Demo script for the tutor chat relay.

Walks through the response cache, fallback replies and (when OPENAI_API_KEY
is set) a live streamed answer, without starting the HTTP server.
"""

import asyncio
import json
import time

from tutor_chat.config import settings
from tutor_chat.entities import ChatTurn
from tutor_chat.repositories import MemoryResponseStore, OpenAIChatProvider
from tutor_chat.services import COMMON_QUESTIONS, ChatRelay, FallbackResponder, ResponseCache


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def demo_response_cache() -> None:
    """Demonstrate exact-repeat caching."""
    print_section("Response Cache")

    cache = ResponseCache(MemoryResponseStore(capacity=3), ttl_ms=60_000)
    count = cache.seed(COMMON_QUESTIONS[:2])
    print(f"\n📝 Seeded {count} common questions: {cache.stats()}")

    history = [ChatTurn("user", "저는 학생이에요"), ChatTurn("assistant", "반가워요!")]
    queries = [
        ("안녕하세요", ()),
        ("  안녕하세요  ", ()),
        ("안녕하세요", history),
    ]

    print("\n🔍 Lookups (message is lowercased and trimmed, last 3 turns count):")
    for message, turns in queries:
        start = time.perf_counter()
        hit = cache.get(message, turns)
        duration = (time.perf_counter() - start) * 1000
        label = "✓ HIT " if hit is not None else "✗ MISS"
        print(f"  {label} key={cache.key(message, turns)!r} ({duration:.3f}ms)")

    print("\n📦 FIFO eviction at capacity 3:")
    cache.set("질문 1", "답 1")
    cache.set("질문 2", "답 2")
    print(f"  Size after two more inserts: {cache.stats()['size']}")
    print(f"  Oldest seed still cached? {cache.get(COMMON_QUESTIONS[0][0]) is not None}")


def demo_fallback() -> None:
    """Demonstrate canned replies."""
    print_section("Fallback Replies")

    responder = FallbackResponder()
    for message in ("받침", "존댓말이 뭐예요?", "한국어 문법을 알려주세요"):
        print(f"\n  '{message}' (length {len(message)} -> template {len(message) % len(responder.templates)})")
        print(f"  {responder.fallback(message)}")


async def demo_live_stream() -> None:
    """Stream one answer from the configured provider."""
    print_section(f"Live Stream ({settings.openai_model})")

    provider = OpenAIChatProvider.create()
    relay = ChatRelay(cache=ResponseCache(MemoryResponseStore()), provider=provider)
    try:
        for attempt in (1, 2):
            print(f"\n💬 Attempt {attempt}:")
            async for event in relay.open_stream("'먹다'의 존댓말은 뭐예요?"):
                payload = json.loads(event[len("data: "):])
                if payload["done"]:
                    print(f"\n  [done] {payload}")
                else:
                    print(payload["content"], end="", flush=True)
    finally:
        await provider.close()


def main() -> None:
    """Run all demos."""
    print("\n🚀 Tutor Chat Demo")
    print("=" * 70)

    try:
        demo_response_cache()
        demo_fallback()
        if settings.openai_api_key:
            asyncio.run(demo_live_stream())
        else:
            print("\nℹ️  Set OPENAI_API_KEY to run the live streaming demo.")

        print("\n" + "=" * 70)
        print("✅ Demo completed successfully!")
        print("=" * 70)

    except Exception as e:
        print(f"\n❌ Error: {e}")


if __name__ == "__main__":
    main()
