"""User watchlists, kept in memory and persisted as one JSON document."""

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from stock_tracker.data.store import WATCHLISTS_KEY, PersistentStore

logger = logging.getLogger(__name__)


class WatchlistError(ValueError):
    """Rejected watchlist operation."""

    error_type = "invalid_watchlist"


class InvalidWatchlistNameError(WatchlistError):
    error_type = "invalid_watchlist_name"


class DuplicateWatchlistError(WatchlistError):
    error_type = "duplicate_watchlist"


@dataclass
class Watchlist:
    """A named list of tickers. Ticker order is insertion order, without repeats."""

    id: str
    name: str
    tickers: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "tickers": list(self.tickers)}


def _normalize_ticker(ticker: str) -> str:
    return (ticker or "").strip().upper()


def _tickers_from(item: dict[str, Any]) -> list[str]:
    """Tickers of a stored list; older layouts stored whole stock rows under "stocks"."""
    raw = item.get("tickers")
    if raw is None:
        raw = [s.get("ticker") for s in item.get("stocks") or [] if isinstance(s, dict)]
    tickers: list[str] = []
    for value in raw if isinstance(raw, list) else []:
        ticker = _normalize_ticker(value) if isinstance(value, str) else ""
        if ticker and ticker not in tickers:
            tickers.append(ticker)
    return tickers


def decode_watchlists(raw: str) -> list[Watchlist]:
    """
    Decode the persisted collection.

    Entries without a usable id or name, and entries repeating a name
    already seen, are skipped so the loaded state satisfies the same
    invariants as live mutations.

    Raises:
        ValueError: raw is not a JSON array
    """
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError("watchlist document is not a list")

    lists: list[Watchlist] = []
    names: set[str] = set()
    ids: set[str] = set()
    for item in data:
        if not isinstance(item, dict):
            continue
        list_id = str(item.get("id") or "").strip()
        name = str(item.get("name") or "").strip()
        if not list_id or not name or name in names or list_id in ids:
            logger.warning(f"Skipping invalid stored watchlist: {item.get('name')!r}")
            continue
        names.add(name)
        ids.add(list_id)
        lists.append(Watchlist(id=list_id, name=name, tickers=_tickers_from(item)))
    return lists


class WatchlistStore:
    """
    Named ticker lists with eventual persistence.

    Mutations apply to memory immediately and then schedule a write of the
    full collection. Writes are serialized and each one snapshots the state
    current when it runs, so the last write to land always holds the
    latest collection. Persistence failures are logged and never surface
    to callers.
    """

    def __init__(self, store: PersistentStore, key: str = WATCHLISTS_KEY):
        self.store = store
        self.key = key
        self._lists: list[Watchlist] = []
        self._write_lock = asyncio.Lock()
        self._pending: set[asyncio.Task[None]] = set()
        self.loaded = False

    # Reads

    @property
    def lists(self) -> list[Watchlist]:
        """Copy of the collection in creation order."""
        return [Watchlist(w.id, w.name, list(w.tickers)) for w in self._lists]

    def get(self, list_id: str) -> Watchlist | None:
        found = self._find(list_id)
        return Watchlist(found.id, found.name, list(found.tickers)) if found else None

    def lists_containing(self, ticker: str) -> list[str]:
        """Ids of the lists that hold ticker."""
        symbol = _normalize_ticker(ticker)
        return [w.id for w in self._lists if symbol in w.tickers]

    def _find(self, list_id: str) -> Watchlist | None:
        return next((w for w in self._lists if w.id == list_id), None)

    # Lifecycle

    async def load_all(self) -> None:
        """Load the collection once at startup. Missing or bad data means empty."""
        try:
            raw = await self.store.get(self.key)
            self._lists = decode_watchlists(raw) if raw else []
        except Exception as e:
            logger.warning(f"Failed to load watchlists, starting empty: {e}")
            self._lists = []
        self.loaded = True
        logger.info(f"Loaded {len(self._lists)} watchlists")

    async def flush(self) -> None:
        """Wait for every scheduled write to finish."""
        while self._pending:
            pending = list(self._pending)
            await asyncio.gather(*pending)
            self._pending.difference_update(pending)

    # Mutations

    def create_list(self, name: str) -> str:
        """
        Create an empty list and return its id.

        Raises:
            InvalidWatchlistNameError: name is blank
            DuplicateWatchlistError: another list already has this name
        """
        clean = (name or "").strip()
        if not clean:
            raise InvalidWatchlistNameError("Watchlist name cannot be empty")
        if any(w.name == clean for w in self._lists):
            raise DuplicateWatchlistError(f"A watchlist named '{clean}' already exists")

        list_id = uuid.uuid4().hex
        self._lists.append(Watchlist(id=list_id, name=clean))
        self._schedule_persist()
        return list_id

    def add_ticker(self, list_id: str, ticker: str) -> None:
        """Append ticker to one list. Other lists are not touched."""
        watchlist = self._find(list_id)
        symbol = _normalize_ticker(ticker)
        if watchlist is None or not symbol or symbol in watchlist.tickers:
            return
        watchlist.tickers.append(symbol)
        self._schedule_persist()

    def remove_ticker(self, list_id: str, ticker: str) -> None:
        watchlist = self._find(list_id)
        symbol = _normalize_ticker(ticker)
        if watchlist is None or symbol not in watchlist.tickers:
            return
        watchlist.tickers.remove(symbol)
        self._schedule_persist()

    def remove_list(self, list_id: str) -> None:
        watchlist = self._find(list_id)
        if watchlist is None:
            return
        self._lists.remove(watchlist)
        self._schedule_persist()

    # Persistence

    def _snapshot(self) -> str:
        return json.dumps([w.to_dict() for w in self._lists])

    async def _persist(self) -> None:
        async with self._write_lock:
            try:
                await self.store.set(self.key, self._snapshot())
            except Exception as e:
                logger.warning(f"Failed to save watchlists: {e}")

    def _schedule_persist(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop: write now
            asyncio.run(self._persist())
            return
        task = loop.create_task(self._persist())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
