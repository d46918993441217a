"""Bounded TTL cache in front of the external nutrition providers."""

import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Protocol


class Cache(Protocol):
    """Key-value store for provider responses."""

    def get(self, key: str) -> object | None:
        """Return a cached value if present and not expired."""

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a value for ``ttl_seconds``."""


def cache_key(provider: str, kind: str, *parts: object) -> str:
    """Build a cache key; text parts are lower-cased and trimmed.

    Search-as-you-type sends "Apple", "apple " and "apple" for the same
    lookup, so they share one entry.
    """
    normalized = [
        part.strip().lower() if isinstance(part, str) else str(part) for part in parts
    ]
    return ":".join([provider, kind, *normalized])


class InMemoryCache(Cache):
    """Process-local LRU cache; entries expire lazily on read."""

    def __init__(
        self, max_entries: int = 2048, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, object]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> object | None:
        item = self._entries.get(key)
        if item is None:
            return None
        expires_at, value = item
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        self._entries[key] = (self._clock() + ttl_seconds, value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
