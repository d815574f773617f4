from __future__ import annotations

import asyncio
import json

from gencache.cache import CacheStore, InMemoryKeyValueStore
from gencache.errors import PersistentStoreError


def run_async(coro):
    return asyncio.run(coro)


class _Clock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class _BrokenStore:
    backend_id = "broken"

    def __init__(self) -> None:
        self.writes = 0

    async def read(self, key):
        raise PersistentStoreError("read down")

    async def write(self, key, blob):
        self.writes += 1
        raise PersistentStoreError("write down")

    async def remove(self, key):
        raise PersistentStoreError("remove down")

    async def list_keys(self, prefix):
        raise PersistentStoreError("list down")


def test_set_then_get_returns_value_and_expires_after_ttl():
    async def scenario() -> None:
        clock = _Clock()
        cache = CacheStore(clock=clock)

        await cache.set("k", "v", ttl_s=1.0)
        assert await cache.get("k") == "v"

        clock.advance(1.1)
        assert await cache.get("k") is None
        stats = await cache.stats()
        assert stats.total_entries == 0
        assert stats.in_process_entries == 0

    run_async(scenario())


def test_entry_is_stale_exactly_at_ttl_boundary():
    async def scenario() -> None:
        clock = _Clock()
        cache = CacheStore(clock=clock)
        await cache.set("k", "v", ttl_s=10.0)

        clock.advance(9.999)
        assert await cache.get("k") == "v"
        clock.advance(0.001)
        assert await cache.get("k") is None

    run_async(scenario())


def test_default_ttl_applies_when_not_given():
    async def scenario() -> None:
        clock = _Clock()
        cache = CacheStore(clock=clock, default_ttl_s=5.0)
        await cache.set("k", {"title": "soup"})

        clock.advance(4.0)
        assert await cache.get("k") == {"title": "soup"}
        clock.advance(1.0)
        assert await cache.get("k") is None

    run_async(scenario())


def test_persistent_hit_is_promoted_into_fresh_process_tier():
    async def scenario() -> None:
        clock = _Clock()
        store = InMemoryKeyValueStore()
        first = CacheStore(store, clock=clock)
        await first.set("recipe:egg", {"title": "omelette"}, ttl_s=60.0)

        restarted = CacheStore(store, clock=clock)
        assert (await restarted.stats()).in_process_entries == 0
        assert await restarted.get("recipe:egg") == {"title": "omelette"}
        stats = await restarted.stats()
        assert stats.in_process_entries == 1
        assert stats.total_entries == 1

    run_async(scenario())


def test_expired_persistent_entry_is_deleted_from_both_tiers():
    async def scenario() -> None:
        clock = _Clock()
        store = InMemoryKeyValueStore()
        await CacheStore(store, clock=clock).set("k", "v", ttl_s=1.0)

        clock.advance(2.0)
        restarted = CacheStore(store, clock=clock)
        assert await restarted.get("k") is None
        assert await store.list_keys("gencache:cache:") == []
        assert (await restarted.stats()).in_process_entries == 0

    run_async(scenario())


def test_persistent_write_failure_keeps_process_tier_value():
    async def scenario() -> None:
        store = _BrokenStore()
        cache = CacheStore(store)

        await cache.set("k", "v")
        assert store.writes == 1
        assert await cache.get("k") == "v"

        stats = await cache.stats()
        assert stats.in_process_entries == 1
        assert stats.total_entries == 1

        await cache.delete("k")
        assert await cache.get("k") is None

    run_async(scenario())


def test_quota_exceeded_degrades_to_process_only_caching():
    async def scenario() -> None:
        store = InMemoryKeyValueStore(max_entries=1)
        cache = CacheStore(store)

        await cache.set("a", 1)
        await cache.set("b", 2)

        assert await cache.get("a") == 1
        assert await cache.get("b") == 2
        assert await store.list_keys(cache.namespace) == ["gencache:cache:a"]

    run_async(scenario())


def test_unserializable_value_is_cached_in_process_only():
    async def scenario() -> None:
        store = InMemoryKeyValueStore()
        cache = CacheStore(store)
        payload = {"audio": object()}

        await cache.set("tts:abc", payload)
        assert await cache.get("tts:abc") is payload
        assert await store.list_keys(cache.namespace) == []

    run_async(scenario())


def test_corrupt_persistent_entry_is_treated_as_miss_and_removed():
    async def scenario() -> None:
        store = InMemoryKeyValueStore()
        await store.write("gencache:cache:half", '{"value": "v", "created_at')
        await store.write("gencache:cache:odd", json.dumps({"value": 1}))
        cache = CacheStore(store)

        assert await cache.get("half") is None
        assert await cache.get("odd") is None
        assert await store.list_keys(cache.namespace) == []

    run_async(scenario())


def test_delete_removes_from_both_tiers():
    async def scenario() -> None:
        store = InMemoryKeyValueStore()
        cache = CacheStore(store)
        await cache.set("k", "v")

        await cache.delete("k")
        assert await store.read("gencache:cache:k") is None
        assert await cache.get("k") is None

    run_async(scenario())


def test_sweep_expired_removes_only_stale_entries():
    async def scenario() -> None:
        clock = _Clock()
        store = InMemoryKeyValueStore()
        await store.write("other:keep", "not ours")
        cache = CacheStore(store, clock=clock)

        await cache.set("short", 1, ttl_s=1.0)
        await cache.set("long", 2, ttl_s=100.0)
        await store.write("gencache:cache:broken", "{")

        clock.advance(5.0)
        removed = await cache.sweep_expired()

        assert removed == 2
        assert sorted(await store.list_keys(cache.namespace)) == ["gencache:cache:long"]
        assert await store.read("other:keep") == "not ours"
        stats = await cache.stats()
        assert stats.total_entries == 1
        assert stats.in_process_entries == 1

    run_async(scenario())


def test_clear_drops_namespace_entries():
    async def scenario() -> None:
        store = InMemoryKeyValueStore()
        await store.write("gencache:usage", "{}")
        cache = CacheStore(store)
        await cache.set("a", 1)
        await cache.set("b", 2)

        await cache.clear()

        stats = await cache.stats()
        assert stats.total_entries == 0
        assert stats.in_process_entries == 0
        assert await store.read("gencache:usage") == "{}"

    run_async(scenario())


def test_broken_store_reads_behave_like_misses():
    async def scenario() -> None:
        cache = CacheStore(_BrokenStore())
        assert await cache.get("missing") is None
        assert await cache.sweep_expired() == 0

    run_async(scenario())


def test_failed_write_drops_older_persisted_copy():
    async def scenario() -> None:
        clock = _Clock()
        store = InMemoryKeyValueStore()
        cache = CacheStore(store, clock=clock)

        await cache.set("k", "old", ttl_s=10.0)
        clock.advance(9.0)
        fresh = {"audio": object()}
        await cache.set("k", fresh, ttl_s=100.0)
        assert await store.list_keys(cache.namespace) == []

        clock.advance(2.0)
        assert await cache.sweep_expired() == 0
        assert await cache.get("k") is fresh

    run_async(scenario())


def test_sweep_keeps_fresh_process_entry_over_stale_persisted_copy():
    async def scenario() -> None:
        clock = _Clock()
        store = InMemoryKeyValueStore()
        cache = CacheStore(store, clock=clock)

        await CacheStore(store, clock=clock).set("k", "old", ttl_s=10.0)
        stale_blob = await store.read("gencache:cache:k")
        await cache.set("k", "new", ttl_s=100.0)
        await store.write("gencache:cache:k", stale_blob)

        clock.advance(11.0)
        assert await cache.sweep_expired() == 0
        assert await store.read("gencache:cache:k") is None
        assert await cache.get("k") == "new"

    run_async(scenario())


def test_get_returns_default_on_miss_so_cached_none_is_visible():
    async def scenario() -> None:
        missing = object()
        cache = CacheStore(clock=_Clock())

        assert await cache.get("k", missing) is missing
        await cache.set("k", None)
        assert await cache.get("k", missing) is None

    run_async(scenario())
