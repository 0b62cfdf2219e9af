"""Key/value persistence shared by the result cache and the watchlists."""

import asyncio
import os
from typing import Protocol

import diskcache

WATCHLISTS_KEY = "watchlists"


class PersistentStore(Protocol):
    """Async string store. Every method may raise; callers decide how to degrade."""

    async def get(self, key: str) -> str | None:
        """Return the stored string or None."""

    async def set(self, key: str, value: str) -> None:
        """Store value, replacing any previous one."""

    async def remove(self, key: str) -> None:
        """Delete key if present."""


class DiskStore:
    """
    PersistentStore on top of diskcache.

    diskcache is process- and thread-safe, so calls run directly on the
    event loop thread; individual operations are small SQLite writes.
    """

    def __init__(self, directory: str | None = None):
        if directory is None:
            directory = os.environ.get("CACHE_DIR", ".cache/stock-tracker")
        self.directory = directory
        self.cache: diskcache.Cache = diskcache.Cache(directory)

    async def get(self, key: str) -> str | None:
        value = self.cache.get(key)
        return value if isinstance(value, str) else None

    async def set(self, key: str, value: str) -> None:
        self.cache.set(key, value)

    async def remove(self, key: str) -> None:
        self.cache.delete(key)

    def close(self) -> None:
        self.cache.close()


class MemoryStore:
    """Process-local PersistentStore, for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        await asyncio.sleep(0)
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.sleep(0)
        self.data[key] = value

    async def remove(self, key: str) -> None:
        await asyncio.sleep(0)
        self.data.pop(key, None)
