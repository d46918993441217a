"""Tests for the provider response cache."""

from calorie_tracker.services.cache import InMemoryCache, cache_key


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_cache_key_normalizes_text_parts() -> None:
    assert cache_key("fdc", "search", " Apple ", 20) == cache_key("fdc", "search", "apple", 20)
    assert cache_key("off", "barcode", "123") == "off:barcode:123"


def test_entries_expire() -> None:
    clock = _Clock()
    cache = InMemoryCache(clock=clock)
    cache.set("k", [1], ttl_seconds=60)

    clock.now = 59
    assert cache.get("k") == [1]

    clock.now = 60
    assert cache.get("k") is None
    assert len(cache) == 0


def test_least_recently_used_entry_is_evicted() -> None:
    cache = InMemoryCache(max_entries=2)
    cache.set("a", 1, ttl_seconds=60)
    cache.set("b", 2, ttl_seconds=60)
    cache.get("a")
    cache.set("c", 3, ttl_seconds=60)

    assert cache.get("a") == 1
    assert cache.get("b") is None
    assert cache.get("c") == 3
