"""Generic tenant-scoped entity store.

A store keeps an in-memory mirror of one persisted collection.  Every
mutation follows the same transaction: compute the new collection from
the current snapshot, persist the *whole* collection, and only then
swap the mirror.  A failed write therefore never leaves the mirror and
the durable copy out of step.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import TypeAdapter

from pylaundry.exceptions import LaundryError, LaundryNotFoundError, LaundryPersistenceError
from pylaundry.models._base import LaundryBaseModel, LaundryPatch, coerce, utcnow
from pylaundry.persistence import PersistenceGateway
from pylaundry.runner import AsyncOperationRunner, LoggingNotificationSink, NotificationSink

_logger = logging.getLogger(__name__)

T = TypeVar("T", bound=LaundryBaseModel)
R = TypeVar("R")
P = TypeVar("P", bound=LaundryPatch)

Change = Callable[[tuple[T, ...]], tuple[tuple[T, ...], R]]


class EntityStore(ABC, Generic[T]):
    """CRUD, tenant queries and aggregates over one persisted collection.

    Subclasses set :attr:`key`, :attr:`model`, :attr:`label` and
    :attr:`id_prefix` and expose the entity-specific operations.
    """

    key: ClassVar[str] = ""
    model: ClassVar[type[Any]] = LaundryBaseModel
    label: ClassVar[str] = "Entity"
    id_prefix: ClassVar[str] = "entity"

    def __init__(
        self,
        gateway: PersistenceGateway,
        *,
        cache_ttl: float | None = None,
        sink: NotificationSink | None = None,
        serialize_mutations: bool = True,
        clock: Callable[[], datetime] = utcnow,
        fallback: Sequence[T] = (),
    ) -> None:
        self._gateway = gateway
        self._cache_ttl = cache_ttl
        self._sink = sink if sink is not None else LoggingNotificationSink()
        self._clock = clock
        self._fallback: tuple[T, ...] = tuple(fallback)
        self._items: tuple[T, ...] = ()
        self._loaded = False
        self._lock: asyncio.Lock | None = asyncio.Lock() if serialize_mutations else None
        self._adapter: TypeAdapter[list[Any]] = TypeAdapter(list[self.model])
        self.runner = AsyncOperationRunner(
            on_error=self._on_error,
            name=f"{self.label} operation",
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def items(self) -> list[T]:
        return list(self._items)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def is_loading(self) -> bool:
        return self.runner.loading

    @property
    def error(self) -> str | None:
        return self.runner.error

    def get(self, entity_id: str) -> T | None:
        for item in self._items:
            if item.id == entity_id:  # type: ignore[attr-defined]
                return item
        return None

    def query(self, tenant_id: str) -> list[T]:
        """Entities belonging to *tenant_id*.  Pure filter over the mirror."""
        return [item for item in self._items if getattr(item, "tenant_id", None) == tenant_id]

    @abstractmethod
    def aggregate(self, tenant_id: str) -> Any:
        """Summary statistics over *tenant_id*'s entities."""

    def dump_records(self) -> list[dict[str, Any]]:
        """The mirror as JSON-ready records with camelCase keys."""
        return self._adapter.dump_python(list(self._items), mode="json", by_alias=True)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def parse_records(self, raw: Any) -> tuple[T, ...]:
        """Validate a decoded JSON array as this store's entities."""
        if not isinstance(raw, list):
            raise ValueError(f"expected a JSON array under {self.key!r}, got {type(raw).__name__}")
        return tuple(self._adapter.validate_python(raw))

    async def load(self) -> None:
        """Populate the mirror from the persisted collection.

        Unreadable or corrupt data yields the fallback collection; this
        never raises.
        """
        items = await self._gateway.get_item(
            self.key,
            fallback_value=self._fallback,
            cache_timeout=self._cache_ttl,
            parse=self.parse_records,
        )
        self._items = tuple(items)
        self._loaded = True
        _logger.debug("Loaded %d %s record(s)", len(self._items), self.key)

    async def refresh(self) -> bool:
        """Re-read the collection from durable storage, bypassing the cache."""

        async def _op() -> bool:
            self._gateway.invalidate(self.key)
            await self.load()
            return True

        return await self.runner.execute(_op) is not None

    # ------------------------------------------------------------------
    # Mutation transaction
    # ------------------------------------------------------------------

    def _mutation_lock(self) -> contextlib.AbstractAsyncContextManager[Any]:
        if self._lock is None:
            return contextlib.nullcontext()
        return self._lock

    def _require_loaded(self) -> None:
        if not self._loaded:
            raise LaundryError(f"{self.label} store is not loaded yet")

    async def _commit(self, items: tuple[T, ...], failure: str) -> None:
        ok = await self._gateway.set_item(self.key, items, cache_timeout=self._cache_ttl)
        if not ok:
            raise LaundryPersistenceError(failure, key=self.key)
        self._items = items

    async def replace_all(self, items: Sequence[T]) -> None:
        """Persist *items* as the whole collection, outside the runner.

        Raises :class:`LaundryPersistenceError` if the write fails.
        """
        async with self._mutation_lock():
            await self._commit(tuple(items), f"Failed to save {self.key}")
        self._loaded = True

    async def _mutate(self, change: Change[T, R], *, failure: str, success: str | None = None) -> R | None:
        """Run *change* against the current snapshot and persist the result.

        *change* may raise to abort before any I/O happens.
        """

        async def _op() -> R:
            self._require_loaded()
            async with self._mutation_lock():
                new_items, result = change(self._items)
                await self._commit(new_items, failure)
            if success:
                self._sink.notify_success(success)
            return result

        return await self.runner.execute(_op)

    def _index_of(self, items: tuple[T, ...], entity_id: str) -> int:
        for index, item in enumerate(items):
            if item.id == entity_id:  # type: ignore[attr-defined]
                return index
        raise LaundryNotFoundError(f"{self.model.__name__} {entity_id!r} not found", entity_id=entity_id)

    async def _insert(self, build: Callable[[], T], *, failure: str, success: str | None = None) -> str | None:
        def change(items: tuple[T, ...]) -> tuple[tuple[T, ...], str]:
            entity = build()
            return items + (entity,), entity.id  # type: ignore[attr-defined]

        return await self._mutate(change, failure=failure, success=success)

    async def _replace(
        self,
        entity_id: str,
        transform: Callable[[T], T],
        *,
        failure: str,
        success: str | None = None,
    ) -> bool:
        def change(items: tuple[T, ...]) -> tuple[tuple[T, ...], bool]:
            index = self._index_of(items, entity_id)
            updated = transform(items[index])
            return items[:index] + (updated,) + items[index + 1 :], True

        return await self._mutate(change, failure=failure, success=success) is not None

    async def _remove(self, entity_id: str, *, failure: str, success: str | None = None) -> bool:
        def change(items: tuple[T, ...]) -> tuple[tuple[T, ...], bool]:
            self._index_of(items, entity_id)
            return tuple(item for item in items if item.id != entity_id), True  # type: ignore[attr-defined]

        return await self._mutate(change, failure=failure, success=success) is not None

    def _patched(self, entity: T, patch: LaundryPatch | Mapping[str, Any], patch_model: type[P], **extra: Any) -> T:
        typed = coerce(patch_model, patch)
        return typed.apply_to(entity, **extra)

    # ------------------------------------------------------------------
    # Runner callbacks
    # ------------------------------------------------------------------

    def _on_error(self, exc: Exception) -> None:
        self._sink.notify_error(f"{self.label} operation failed: {exc}")
