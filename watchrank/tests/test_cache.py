"""Tests for the response cache."""

from watchrank.providers.cache import CacheEntry, ResponseCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_entry_freshness():
    entry = CacheEntry(value=[1], fetched_at=100.0)

    assert entry.age(now=130.0) == 30.0
    assert entry.is_fresh(60, now=160.0)
    assert not entry.is_fresh(60, now=160.1)


def test_get_fresh_respects_ttl():
    clock = FakeClock()
    cache = ResponseCache(clock=clock)
    cache.put(("movie", 1), ["a"])

    assert cache.get_fresh(("movie", 1), ttl_seconds=10) == ["a"]

    clock.now += 11
    assert cache.get_fresh(("movie", 1), ttl_seconds=10) is None
    # Stale entries stay until pruned; the caller decides on TTL.
    assert cache.get(("movie", 1)).value == ["a"]


def test_prune_and_invalidate():
    clock = FakeClock()
    cache = ResponseCache(clock=clock)
    cache.put("old", 1)
    clock.now += 100
    cache.put("new", 2)

    assert cache.prune(ttl_seconds=50) == 1
    assert "old" not in cache
    assert len(cache) == 1

    cache.invalidate("new")
    cache.invalidate("missing")
    assert len(cache) == 0


def test_caches_are_independent():
    first, second = ResponseCache(), ResponseCache()
    first.put("k", 1)

    assert second.get("k") is None
    first.clear()
    assert first.get("k") is None
