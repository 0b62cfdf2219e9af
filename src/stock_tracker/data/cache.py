"""TTL-checked result cache on top of the persistent store."""

import json
import logging
import time
from collections.abc import Callable
from typing import Any

from stock_tracker.data.store import PersistentStore

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class ResultCache:
    """
    Memoizes upstream results in a PersistentStore.

    Entries are stored as JSON ``{"payload": ..., "storedAt": epoch_ms}``.
    Freshness is decided by the reader: the same entry can be fresh for one
    TTL and stale for another. Stale entries are left in place and are
    overwritten by the next successful write.

    The cache is best-effort in both directions. A read that cannot decode
    or reach the store is a miss; a write that fails is logged and dropped.
    """

    def __init__(self, store: PersistentStore, clock: Callable[[], int] = now_ms):
        self.store = store
        self.clock = clock

    async def read(self, key: str, ttl_ms: int) -> Any | None:
        """
        Return the cached payload for key, or None on a miss.

        Args:
            key: Cache key (e.g. "overview:AAPL")
            ttl_ms: Maximum age in milliseconds; age >= ttl_ms is stale

        Returns:
            Decoded payload or None
        """
        try:
            raw = await self.store.get(key)
        except Exception as e:
            logger.warning(f"cache read({key}) failed: {e}")
            return None
        if raw is None:
            logger.debug(f"cache miss: {key}")
            return None

        try:
            entry = json.loads(raw)
            payload = entry["payload"]
            stored_at = int(entry["storedAt"])
        except (ValueError, TypeError, KeyError) as e:
            logger.debug(f"cache entry {key} unreadable: {e}")
            return None

        if self.clock() - stored_at >= ttl_ms:
            logger.debug(f"cache stale: {key}")
            return None
        logger.debug(f"cache hit: {key}")
        return payload

    async def write(self, key: str, value: Any) -> None:
        """Store value under key, replacing any previous entry."""
        try:
            raw = json.dumps({"payload": value, "storedAt": self.clock()}, allow_nan=False)
            await self.store.set(key, raw)
        except Exception as e:
            logger.warning(f"cache write({key}) failed: {e}")

    async def remove(self, key: str) -> None:
        try:
            await self.store.remove(key)
        except Exception as e:
            logger.warning(f"cache remove({key}) failed: {e}")


def overview_key(symbol: str) -> str:
    return f"overview:{symbol}"


def search_key(query: str) -> str:
    return f"search:{query}"


TOP_MOVERS_KEY = "topmovers"
