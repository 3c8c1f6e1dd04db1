"""In-memory TTL cache with fallback-value semantics.

Entries expire lazily: there is no background sweep, staleness is only
detected when a key is read again.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pylaundry._constants import DEFAULT_CACHE_TTL


@dataclass(slots=True)
class CacheEntry:
    """A cached value and the moment it was inserted."""

    key: str
    value: Any
    inserted_at: float
    ttl: float

    def is_expired(self, now: float, ttl: float | None = None) -> bool:
        effective = self.ttl if ttl is None else ttl
        return now >= self.inserted_at + effective


class CacheStore:
    """String-keyed cache whose misses return a caller-supplied fallback."""

    def __init__(
        self,
        *,
        default_ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str, fallback: Any = None, ttl: float | None = None) -> Any:
        """Return the cached value for *key*, or *fallback* on a miss.

        An entry older than its TTL (or *ttl*, when given) counts as a
        miss and is dropped.
        """
        entry = self._entries.get(key)
        if entry is None:
            return fallback
        if entry.is_expired(self._clock(), ttl):
            self._entries.pop(key, None)
            return fallback
        return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            inserted_at=self._clock(),
            ttl=self._default_ttl if ttl is None else ttl,
        )

    def invalidate(self, key: str | None = None) -> None:
        """Drop *key*, or every entry when no key is given."""
        if key is None:
            self._entries.clear()
            return
        self._entries.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
