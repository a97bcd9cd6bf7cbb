#!/usr/bin/env python3
"""
Demo script for TeleCleaner.

Exercises the avatar cache against Redis and, when a gateway and a stored
session are available, hydrates the real chat list while printing progress.
"""

import asyncio
import time

from telecleaner import (
    AuthGate,
    AuthRequiredError,
    AvatarCache,
    ChatListHydrator,
    HttpChatGateway,
    RedisKeyValueStore,
    SessionStore,
    settings,
)
from telecleaner.config import configure_logging

SAMPLE_PHOTO = "data:image/jpeg;base64,/9j/4AAQSkZJRgABAQAAAQABAAD"


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


async def demo_avatar_cache(store: RedisKeyValueStore) -> None:
    """Demonstrate cache hits, photo changes and persistence."""
    print_section("Avatar Cache")

    cache = AvatarCache(store=store)
    await cache.clear()

    print("\n📝 Caching avatars for 3 chats...")
    for i in range(3):
        await cache.set(f"demo-{i}", f"photo-{i}", SAMPLE_PHOTO)

    start = time.perf_counter()
    hit = await cache.get("demo-0", "photo-0")
    elapsed = (time.perf_counter() - start) * 1000
    print(f"  ✓ Memory lookup: {'HIT' if hit else 'MISS'} ({elapsed:.2f}ms)")

    changed = await cache.get("demo-1", "photo-1-new", force_check=True)
    print(f"  ✓ Photo changed server-side: {'HIT' if changed else 'MISS (entry dropped)'}")

    restarted = AvatarCache(store=store)
    start = time.perf_counter()
    hit = await restarted.get("demo-2", "photo-2")
    elapsed = (time.perf_counter() - start) * 1000
    print(f"  ✓ After restart: {'HIT' if hit else 'MISS'} ({elapsed:.2f}ms)")

    stats = await restarted.get_stats()
    print(f"\n📊 Stats: {stats['size']}/{stats['max_size']} entries, {stats['memory_size']} in memory")

    await restarted.clear()


async def demo_hydration(store: RedisKeyValueStore) -> None:
    """Hydrate the stored account's chat list batch by batch."""
    print_section("Chat List Hydration")

    if not settings.gateway_configured:
        print("\n⏭  GATEWAY_BASE_URL / GATEWAY_API_KEY not set, skipping")
        return

    gateway = HttpChatGateway.create()
    gate = AuthGate(SessionStore(store), revalidate=gateway.validate_session)
    hydrator = ChatListHydrator(gateway=gateway, avatar_cache=AvatarCache(store=store), auth_gate=gate)

    def show_progress(state) -> None:
        counted = sum(1 for chat in state.items() if chat.message_count is not None)
        print(f"  {len(state):>4} chats | {state.batches_merged:>3} batches | {counted:>4} counted")

    hydrator.add_listener(show_progress)

    try:
        start = time.perf_counter()
        state = await hydrator.load()
        elapsed = time.perf_counter() - start
    except AuthRequiredError as e:
        print(f"\n🔒 Log in first (POST /session): {e.reason}")
        return
    finally:
        await gateway.close()

    print(f"\n✓ Hydrated {len(state)} chats in {elapsed:.1f}s")
    for chat in state.items()[:10]:
        avatar = "🖼 " if chat.avatar and chat.avatar.startswith("data:image") else chat.avatar
        print(f"  {avatar:<3} {chat.name[:40]:<40} {chat.type.value:<11} {chat.message_count}")


async def run() -> None:
    store = RedisKeyValueStore.create()
    try:
        await demo_avatar_cache(store)
        await demo_hydration(store)
    finally:
        await store.close()


def main() -> None:
    """Run all demos."""
    configure_logging("WARNING")

    print("\n🚀 TeleCleaner Demo")
    print("=" * 70)

    try:
        asyncio.run(run())

        print("\n" + "=" * 70)
        print("✅ Demo completed successfully!")
        print("=" * 70)

    except Exception as e:
        print(f"\n❌ Error: {e}")
        print("\nMake sure Redis is running:")
        print("  docker compose up -d")
        print("\nOr set REDIS_URL to your Redis instance.")


if __name__ == "__main__":
    main()
