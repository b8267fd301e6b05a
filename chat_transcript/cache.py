#!/usr/bin/env python3
"""Bounded in-memory caches for rendered transcript fragments.

Both the markdown cache and the per-message extraction cache are LRUCache
instances owned by one TranscriptRenderer. They are single-writer and not
safe for concurrent mutation; a multi-threaded host must serialize access.
"""

import logging
from collections import OrderedDict
from typing import Callable, Generic, Hashable, Iterator, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class LRUCache(Generic[K, V]):
    """Insertion-order map bounded by entry count.

    Lookups move the entry to the most-recently-used position. Inserting
    beyond max_entries evicts the single least-recently-used entry.
    """

    def __init__(self, max_entries: int, name: str = "cache"):
        if max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self.max_entries = max_entries
        self.name = name
        self._entries: "OrderedDict[K, V]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, key: K) -> Optional[V]:
        """Return the cached value, marking it most recently used."""
        try:
            self._entries.move_to_end(key)
        except KeyError:
            self.misses += 1
            return None
        self.hits += 1
        return self._entries[key]

    def set(self, key: K, value: V) -> None:
        """Store a value, evicting the least recently used entry if full."""
        self._entries[key] = value
        self._entries.move_to_end(key)
        if len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("%s: evicted %r", self.name, evicted)

    def get_or_create(self, key: K, factory: Callable[[], V]) -> V:
        cached = self.get(key)
        if cached is not None:
            return cached
        value = factory()
        self.set(key, value)
        return value

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def keys(self) -> list[K]:
        """Keys ordered from least to most recently used."""
        return list(self._entries.keys())

    def __contains__(self, key: object) -> bool:
        # Membership checks do not count as access
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[K]:
        return iter(list(self._entries.keys()))
