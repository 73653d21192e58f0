"""Explicitly scoped in-memory cache for provider responses."""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Hashable


@dataclass
class CacheEntry:
    """Cached value with the moment it was fetched."""

    value: Any
    fetched_at: float = field(default_factory=time.time)

    def age(self, now: float | None = None) -> float:
        """Seconds since the value was fetched."""
        return (time.time() if now is None else now) - self.fetched_at

    def is_fresh(self, ttl_seconds: float, now: float | None = None) -> bool:
        """True while the entry is younger than the TTL."""
        return self.age(now) <= ttl_seconds


class ResponseCache:
    """Keyed store of fetched responses.

    The cache does not expire anything on its own: callers read an entry and
    decide with `CacheEntry.is_fresh` whether it is still usable. `prune`
    removes entries older than a given TTL.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._entries: dict[Hashable, CacheEntry] = {}
        self._clock = clock

    def get(self, key: Hashable) -> CacheEntry | None:
        """Return the entry for key, or None."""
        return self._entries.get(key)

    def put(self, key: Hashable, value: Any) -> CacheEntry:
        """Store value under key, stamped with the current time."""
        entry = CacheEntry(value=value, fetched_at=self._clock())
        self._entries[key] = entry
        return entry

    def get_fresh(self, key: Hashable, ttl_seconds: float) -> Any | None:
        """Return the cached value when present and within TTL."""
        entry = self._entries.get(key)
        if entry is None or not entry.is_fresh(ttl_seconds, now=self._clock()):
            return None
        return entry.value

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def prune(self, ttl_seconds: float) -> int:
        """Drop stale entries and return how many were removed."""
        now = self._clock()
        stale = [
            key for key, entry in self._entries.items()
            if not entry.is_fresh(ttl_seconds, now=now)
        ]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries
