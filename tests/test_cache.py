"""Tests for the result cache and persistent stores."""

import asyncio
import json

import pytest

from stock_tracker.data.cache import ResultCache
from stock_tracker.data.store import DiskStore, MemoryStore

TTL = 60_000


class FailingStore:
    """Store whose every call raises."""

    async def get(self, key: str) -> str | None:
        raise OSError("disk unavailable")

    async def set(self, key: str, value: str) -> None:
        raise OSError("disk full")

    async def remove(self, key: str) -> None:
        raise OSError("disk unavailable")


class TestResultCache:
    """Tests for ResultCache."""

    def test_write_then_read(self, result_cache: ResultCache) -> None:
        async def scenario():
            await result_cache.write("overview:ACME", {"Symbol": "ACME"})
            return await result_cache.read("overview:ACME", TTL)

        assert asyncio.run(scenario()) == {"Symbol": "ACME"}

    def test_entry_envelope(self, result_cache: ResultCache, memory_store: MemoryStore, clock) -> None:
        asyncio.run(result_cache.write("k", [1, 2, 3]))

        entry = json.loads(memory_store.data["k"])
        assert entry == {"payload": [1, 2, 3], "storedAt": clock.now}

    def test_ttl_boundary(self, result_cache: ResultCache, clock) -> None:
        asyncio.run(result_cache.write("k", "v"))

        clock.advance(TTL - 1)
        assert asyncio.run(result_cache.read("k", TTL)) == "v"

        clock.advance(1)
        assert asyncio.run(result_cache.read("k", TTL)) is None

    def test_ttl_chosen_by_reader(self, result_cache: ResultCache, clock) -> None:
        asyncio.run(result_cache.write("k", "v"))
        clock.advance(10_000)

        assert asyncio.run(result_cache.read("k", 5_000)) is None
        assert asyncio.run(result_cache.read("k", 20_000)) == "v"

    def test_absent_key_is_miss(self, result_cache: ResultCache) -> None:
        assert asyncio.run(result_cache.read("missing", TTL)) is None

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"payload": 1}', '"text"', "null"])
    def test_undecodable_is_miss(self, result_cache: ResultCache, memory_store: MemoryStore, raw: str) -> None:
        memory_store.data["k"] = raw
        assert asyncio.run(result_cache.read("k", TTL)) is None

    def test_write_replaces_entry(self, result_cache: ResultCache, clock) -> None:
        asyncio.run(result_cache.write("k", "old"))
        clock.advance(TTL)
        asyncio.run(result_cache.write("k", "new"))

        assert asyncio.run(result_cache.read("k", TTL)) == "new"

    def test_store_failures_are_swallowed(self, clock) -> None:
        cache = ResultCache(FailingStore(), clock=clock)

        async def scenario():
            await cache.write("k", "v")
            await cache.remove("k")
            return await cache.read("k", TTL)

        assert asyncio.run(scenario()) is None

    def test_unserializable_write_is_swallowed(self, result_cache: ResultCache, memory_store: MemoryStore) -> None:
        asyncio.run(result_cache.write("k", float("nan")))
        assert "k" not in memory_store.data


class TestDiskStore:
    """Tests for the diskcache-backed store."""

    def test_roundtrip(self, tmp_path) -> None:
        store = DiskStore(str(tmp_path / "cache"))

        async def scenario():
            await store.set("watchlists", "[]")
            first = await store.get("watchlists")
            await store.remove("watchlists")
            return first, await store.get("watchlists")

        try:
            assert asyncio.run(scenario()) == ("[]", None)
        finally:
            store.close()

    def test_shared_by_cache(self, tmp_path, clock) -> None:
        store = DiskStore(str(tmp_path / "cache"))
        cache = ResultCache(store, clock=clock)

        async def scenario():
            await cache.write("search:acme", [{"1. symbol": "ACME"}])
            return await cache.read("search:acme", TTL)

        try:
            assert asyncio.run(scenario()) == [{"1. symbol": "ACME"}]
        finally:
            store.close()
