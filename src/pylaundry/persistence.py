"""Durable persistence composed with the in-memory cache.

The gateway is the boundary where storage failures stop being
exceptions: reads degrade to a fallback value and writes report a
boolean.  Callers must check the result instead of catching errors.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from pydantic_core import to_jsonable_python

from pylaundry._storage import ByteStore
from pylaundry.cache import CacheStore

_logger = logging.getLogger(__name__)

T = TypeVar("T")


def encode_value(value: Any) -> bytes:
    """Serialize *value* to compact UTF-8 JSON.

    Pydantic models are dumped in JSON mode with their camelCase aliases,
    datetimes become ISO-8601 strings.
    """
    jsonable = to_jsonable_python(value, by_alias=True)
    return json.dumps(jsonable, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def decode_value(data: bytes) -> Any:
    text = data.decode("utf-8").strip()
    if not text:
        raise ValueError("empty payload")
    return json.loads(text)


class PersistenceGateway:
    """Read/write JSON values through a byte store and a :class:`CacheStore`."""

    def __init__(self, store: ByteStore, cache: CacheStore | None = None) -> None:
        self._store = store
        self._cache = cache if cache is not None else CacheStore()

    @property
    def cache(self) -> CacheStore:
        return self._cache

    async def get_item(
        self,
        key: str,
        *,
        fallback_value: Any = None,
        use_cache: bool = True,
        cache_timeout: float | None = None,
        parse: Callable[[Any], T] | None = None,
    ) -> Any:
        """Return the value stored under *key*, or *fallback_value*.

        Parameters
        ----------
        key
            Storage key.
        fallback_value
            Returned when nothing is stored or the stored value cannot be
            read, decoded or parsed.
        use_cache
            Consult and re-warm the cache.
        cache_timeout
            TTL (seconds) for the re-warmed cache entry.
        parse
            Applied to the decoded JSON (e.g. model reconstruction).  Any
            exception it raises is treated as corruption.
        """
        if use_cache:
            miss = object()
            cached = self._cache.get(key, miss)
            if cached is not miss:
                return cached

        try:
            raw = await self._store.read(key)
            if raw is None:
                return fallback_value
            decoded = decode_value(raw)
            value = parse(decoded) if parse is not None else decoded
        except Exception:
            _logger.warning("Failed to read %r from storage, using fallback", key, exc_info=True)
            return fallback_value

        if use_cache:
            self._cache.set(key, value, cache_timeout)
        return value

    async def set_item(
        self,
        key: str,
        value: Any,
        *,
        use_cache: bool = True,
        cache_timeout: float | None = None,
    ) -> bool:
        """Persist *value* under *key*; return ``False`` on any failure."""
        try:
            payload = encode_value(value)
            await self._store.write(key, payload)
        except Exception:
            _logger.warning("Failed to save %r to storage", key, exc_info=True)
            return False

        if use_cache:
            self._cache.set(key, value, cache_timeout)
        else:
            self._cache.invalidate(key)
        _logger.debug("Saved %r (%d bytes)", key, len(payload))
        return True

    async def remove_item(self, key: str) -> bool:
        try:
            await self._store.delete(key)
        except Exception:
            _logger.warning("Failed to remove %r from storage", key, exc_info=True)
            return False
        self._cache.invalidate(key)
        return True

    async def clear(self) -> bool:
        try:
            await self._store.clear()
        except Exception:
            _logger.warning("Failed to clear storage", exc_info=True)
            return False
        self._cache.invalidate()
        return True

    def invalidate(self, key: str | None = None) -> None:
        self._cache.invalidate(key)
