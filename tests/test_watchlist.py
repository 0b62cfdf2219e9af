"""Tests for watchlist storage."""

import asyncio
import json

import pytest

from stock_tracker.data.store import WATCHLISTS_KEY, MemoryStore
from stock_tracker.data.watchlist import (
    DuplicateWatchlistError,
    InvalidWatchlistNameError,
    WatchlistStore,
    decode_watchlists,
)


class FailingStore:
    """Store whose every call raises."""

    async def get(self, key: str) -> str | None:
        raise OSError("disk unavailable")

    async def set(self, key: str, value: str) -> None:
        raise OSError("disk full")

    async def remove(self, key: str) -> None:
        raise OSError("disk unavailable")


def _stored(memory_store: MemoryStore) -> list[dict]:
    return json.loads(memory_store.data[WATCHLISTS_KEY])


class TestMutations:
    """Tests for in-memory watchlist mutations."""

    def test_create_and_list(self, memory_store: MemoryStore) -> None:
        watchlists = WatchlistStore(memory_store)

        tech = watchlists.create_list("Tech")
        energy = watchlists.create_list("  Energy ")

        assert tech != energy
        assert [w.name for w in watchlists.lists] == ["Tech", "Energy"]
        assert watchlists.get(energy).tickers == []

    def test_duplicate_name_rejected(self, memory_store: MemoryStore) -> None:
        watchlists = WatchlistStore(memory_store)
        watchlists.create_list("A")

        with pytest.raises(DuplicateWatchlistError):
            watchlists.create_list("A")
        with pytest.raises(DuplicateWatchlistError):
            watchlists.create_list(" A ")

        assert [w.name for w in watchlists.lists] == ["A"]

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_blank_name_rejected(self, memory_store: MemoryStore, name) -> None:
        watchlists = WatchlistStore(memory_store)

        with pytest.raises(InvalidWatchlistNameError):
            watchlists.create_list(name)
        assert watchlists.lists == []

    def test_errors_are_value_errors(self, memory_store: MemoryStore) -> None:
        watchlists = WatchlistStore(memory_store)
        with pytest.raises(ValueError):
            watchlists.create_list("")

    def test_add_ticker_is_idempotent(self, memory_store: MemoryStore) -> None:
        watchlists = WatchlistStore(memory_store)
        list_id = watchlists.create_list("Tech")

        watchlists.add_ticker(list_id, "acme")
        watchlists.add_ticker(list_id, "ACME")
        watchlists.add_ticker(list_id, "MSFT")

        assert watchlists.get(list_id).tickers == ["ACME", "MSFT"]

    def test_ticker_in_several_lists(self, memory_store: MemoryStore) -> None:
        watchlists = WatchlistStore(memory_store)
        first = watchlists.create_list("First")
        second = watchlists.create_list("Second")

        watchlists.add_ticker(first, "ACME")
        watchlists.add_ticker(second, "ACME")

        assert watchlists.get(first).tickers == ["ACME"]
        assert watchlists.get(second).tickers == ["ACME"]
        assert watchlists.lists_containing("acme") == [first, second]

    def test_add_to_unknown_list_is_noop(self, memory_store: MemoryStore) -> None:
        watchlists = WatchlistStore(memory_store)
        watchlists.add_ticker("missing", "ACME")
        assert watchlists.lists == []
        assert WATCHLISTS_KEY not in memory_store.data

    def test_remove_ticker(self, memory_store: MemoryStore) -> None:
        watchlists = WatchlistStore(memory_store)
        list_id = watchlists.create_list("Tech")
        watchlists.add_ticker(list_id, "ACME")
        watchlists.add_ticker(list_id, "MSFT")

        watchlists.remove_ticker(list_id, "acme")
        watchlists.remove_ticker(list_id, "ZZZZ")

        assert watchlists.get(list_id).tickers == ["MSFT"]

    def test_remove_list(self, memory_store: MemoryStore) -> None:
        watchlists = WatchlistStore(memory_store)
        keep = watchlists.create_list("Keep")
        drop = watchlists.create_list("Drop")

        watchlists.remove_list(drop)
        watchlists.remove_list("missing")

        assert [w.id for w in watchlists.lists] == [keep]
        assert watchlists.get(drop) is None

    def test_name_free_after_removal(self, memory_store: MemoryStore) -> None:
        watchlists = WatchlistStore(memory_store)
        watchlists.remove_list(watchlists.create_list("A"))
        watchlists.create_list("A")
        assert len(watchlists.lists) == 1

    def test_lists_are_copies(self, memory_store: MemoryStore) -> None:
        watchlists = WatchlistStore(memory_store)
        list_id = watchlists.create_list("Tech")

        watchlists.lists[0].tickers.append("HACK")
        watchlists.get(list_id).tickers.append("HACK")

        assert watchlists.get(list_id).tickers == []


class TestPersistence:
    """Tests for saving and loading the collection."""

    def test_sync_mutations_are_written(self, memory_store: MemoryStore) -> None:
        watchlists = WatchlistStore(memory_store)
        list_id = watchlists.create_list("Tech")
        watchlists.add_ticker(list_id, "ACME")

        assert _stored(memory_store) == [{"id": list_id, "name": "Tech", "tickers": ["ACME"]}]

    def test_flush_persists_latest_state(self, memory_store: MemoryStore) -> None:
        watchlists = WatchlistStore(memory_store)

        async def scenario():
            list_id = watchlists.create_list("Tech")
            for ticker in ("ACME", "MSFT", "GOOG"):
                watchlists.add_ticker(list_id, ticker)
            watchlists.remove_ticker(list_id, "MSFT")
            await watchlists.flush()
            return list_id

        list_id = asyncio.run(scenario())

        assert _stored(memory_store) == [{"id": list_id, "name": "Tech", "tickers": ["ACME", "GOOG"]}]

    def test_mutation_applies_before_write(self, memory_store: MemoryStore) -> None:
        watchlists = WatchlistStore(memory_store)

        async def scenario():
            watchlists.create_list("Tech")
            visible = [w.name for w in watchlists.lists]
            written = WATCHLISTS_KEY in memory_store.data
            await watchlists.flush()
            return visible, written

        visible, written = asyncio.run(scenario())

        assert visible == ["Tech"]
        assert not written
        assert WATCHLISTS_KEY in memory_store.data

    def test_reload_roundtrip(self, memory_store: MemoryStore) -> None:
        watchlists = WatchlistStore(memory_store)
        list_id = watchlists.create_list("Tech")
        watchlists.add_ticker(list_id, "ACME")

        reloaded = WatchlistStore(memory_store)
        asyncio.run(reloaded.load_all())

        assert reloaded.loaded
        assert [w.to_dict() for w in reloaded.lists] == [w.to_dict() for w in watchlists.lists]

    def test_write_failure_keeps_memory_state(self) -> None:
        watchlists = WatchlistStore(FailingStore())

        list_id = watchlists.create_list("Tech")
        watchlists.add_ticker(list_id, "ACME")

        assert watchlists.get(list_id).tickers == ["ACME"]

    @pytest.mark.parametrize("raw", ["{not json", '{"id": "x"}', "42"])
    def test_corrupt_data_loads_empty(self, raw: str) -> None:
        watchlists = WatchlistStore(MemoryStore({WATCHLISTS_KEY: raw}))

        asyncio.run(watchlists.load_all())

        assert watchlists.loaded
        assert watchlists.lists == []

    def test_absent_data_loads_empty(self, memory_store: MemoryStore) -> None:
        watchlists = WatchlistStore(memory_store)
        asyncio.run(watchlists.load_all())
        assert watchlists.lists == []

    def test_unreadable_store_loads_empty(self) -> None:
        watchlists = WatchlistStore(FailingStore())
        asyncio.run(watchlists.load_all())
        assert watchlists.loaded
        assert watchlists.lists == []

    def test_legacy_layout_migrated(self) -> None:
        legacy = [
            {
                "id": "1700000000000",
                "name": "Old",
                "stocks": [{"ticker": "acme", "price": "1.0"}, {"ticker": "MSFT"}, {"price": "2"}],
            }
        ]
        watchlists = WatchlistStore(MemoryStore({WATCHLISTS_KEY: json.dumps(legacy)}))

        asyncio.run(watchlists.load_all())

        assert [w.to_dict() for w in watchlists.lists] == [
            {"id": "1700000000000", "name": "Old", "tickers": ["ACME", "MSFT"]}
        ]


class TestDecodeWatchlists:
    """Tests for decode_watchlists."""

    def test_skips_invalid_and_duplicate_entries(self) -> None:
        raw = json.dumps([
            {"id": "a", "name": "Tech", "tickers": ["ACME", "acme", "", 7]},
            {"id": "b", "name": "Tech", "tickers": []},
            {"id": "a", "name": "Other", "tickers": []},
            {"id": "", "name": "NoId"},
            {"id": "c", "name": "  "},
            "junk",
            {"id": "d", "name": "Energy"},
        ])

        lists = decode_watchlists(raw)

        assert [(w.id, w.name, w.tickers) for w in lists] == [
            ("a", "Tech", ["ACME"]),
            ("d", "Energy", []),
        ]

    def test_non_list_raises(self) -> None:
        with pytest.raises(ValueError):
            decode_watchlists('{"watchlists": []}')
