"""Simple keyed TTL cache for traffic samples."""

import asyncio
import time
from collections.abc import Hashable
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class TTLCache(Generic[K, V]):
    """Keyed cache with time-based expiration.

    Each entry expires `ttl` seconds after it was set. `lock_for(key)` hands out
    one async lock per key so callers can prevent concurrent fetches of the
    same entry without blocking fetches of other entries.
    """

    def __init__(self, ttl: float = 120.0, max_entries: int = 1024):
        """Initialize the cache.

        Args:
            ttl: Time-to-live in seconds for cached values.
            max_entries: Entries kept before the oldest are evicted.
        """
        self._ttl = ttl
        self._max_entries = max_entries
        self._entries: dict[K, tuple[float, V]] = {}
        self._locks: dict[K, asyncio.Lock] = {}

    def get(self, key: K) -> V | None:
        """Get the cached value for a key if it hasn't expired.

        Returns:
            The cached value if valid, None if expired or not set.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: K, value: V) -> None:
        """Set a value in the cache with TTL."""
        self._entries.pop(key, None)
        while len(self._entries) >= self._max_entries:
            # dicts keep insertion order, so the first key is the oldest
            del self._entries[next(iter(self._entries))]
        self._entries[key] = (time.monotonic() + self._ttl, value)

    def clear(self) -> None:
        """Clear all cached values."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def lock_for(self, key: K) -> asyncio.Lock:
        """Get the async lock coordinating fetches of one key."""
        lock = self._locks.get(key)
        if lock is None:
            if len(self._locks) >= self._max_entries:
                # Drop locks not currently held
                self._locks = {k: v for k, v in self._locks.items() if v.locked()}
            lock = self._locks[key] = asyncio.Lock()
        return lock
