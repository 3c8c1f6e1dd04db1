"""Laundry operational state engine.

:class:`LaundryEngine` wires the storage stack (byte store, cache,
persistence gateway) to the entity stores and the route assigner, and
exposes one flat surface to callers.  One engine serves one tenant
session; there are no module-level singletons.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

from pylaundry._storage import ByteStore, EncryptedByteStore, FileByteStore, MemoryByteStore
from pylaundry.backup import new_backup, parse_backup
from pylaundry.cache import CacheStore
from pylaundry.config import EngineConfig
from pylaundry.exceptions import LaundryError
from pylaundry.models._base import coerce, utcnow
from pylaundry.models.driver import DeliveryRoute, Driver, DriverDraft, DriverPatch, DriverStats, RoutePatch, RouteStats
from pylaundry.models.inventory import InventoryItem, InventoryStats, StockMovement
from pylaundry.models.order import Order, OrderDraft, OrderPatch, OrderStats, OrderStatus
from pylaundry.persistence import PersistenceGateway
from pylaundry.routing import FlatStopTimePolicy, RouteAssigner, StopTimePolicy
from pylaundry.runner import AsyncOperationRunner, LoggingNotificationSink, NotificationSink
from pylaundry.stores import DriversStore, InventoryStore, OrdersStore, RoutesStore
from pylaundry.stores._base import EntityStore

_logger = logging.getLogger(__name__)


def build_byte_store(config: EngineConfig) -> ByteStore:
    """Byte store described by *config*: file or memory, optionally encrypted."""
    store: ByteStore
    if config.storage_dir is not None:
        store = FileByteStore(config.storage_dir)
    else:
        store = MemoryByteStore()
    if config.encryption_key:
        store = EncryptedByteStore(store, config.encryption_key)
    return store


class LaundryEngine:
    """Tenant-session facade over orders, inventory, drivers and routes.

    Usage::

        async with LaundryEngine(EngineConfig.from_env()) as engine:
            order_id = await engine.add_order(draft)
            stats = engine.get_order_stats("tenant-1")

    Every operation raises :class:`LaundryError` until the engine has been
    opened.  Mutations report failure through their return value and the
    notification sink, never by raising.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        byte_store: ByteStore | None = None,
        sink: NotificationSink | None = None,
        clock: Callable[[], datetime] = utcnow,
        default_inventory: Sequence[InventoryItem | Mapping[str, Any]] = (),
        policy: StopTimePolicy | None = None,
    ) -> None:
        self._config = config if config is not None else EngineConfig()
        self._sink = sink if sink is not None else LoggingNotificationSink()
        self._cache = CacheStore(default_ttl=self._config.default_cache_ttl)
        self._gateway = PersistenceGateway(
            byte_store if byte_store is not None else build_byte_store(self._config),
            self._cache,
        )

        common: dict[str, Any] = {
            "sink": self._sink,
            "serialize_mutations": self._config.serialize_mutations,
            "clock": clock,
        }
        self.orders_store = OrdersStore(self._gateway, cache_ttl=self._config.orders_cache_ttl, **common)
        self.inventory_store = InventoryStore(
            self._gateway,
            cache_ttl=self._config.inventory_cache_ttl,
            fallback=tuple(coerce(InventoryItem, item) for item in default_inventory),
            **common,
        )
        self.drivers_store = DriversStore(self._gateway, cache_ttl=self._config.drivers_cache_ttl, **common)
        self.routes_store = RoutesStore(self._gateway, cache_ttl=self._config.drivers_cache_ttl, **common)
        self.assigner = RouteAssigner(
            self.drivers_store,
            self.routes_store,
            policy=policy if policy is not None else FlatStopTimePolicy(self._config.minutes_per_stop),
            resolve_address=self._order_address,
        )
        self.runner = AsyncOperationRunner(on_error=self._on_error, name="backup restore")
        self._ready = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def gateway(self) -> PersistenceGateway:
        return self._gateway

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def _stores(self) -> tuple[EntityStore[Any], ...]:
        return (self.orders_store, self.inventory_store, self.drivers_store, self.routes_store)

    async def open(self) -> None:
        """Load every store from durable storage."""
        await asyncio.gather(*(store.load() for store in self._stores))
        self._ready = True
        _logger.debug(
            "Engine ready: %d order(s), %d item(s), %d driver(s), %d route(s)",
            len(self.orders_store.items),
            len(self.inventory_store.items),
            len(self.drivers_store.items),
            len(self.routes_store.items),
        )

    async def close(self) -> None:
        self._ready = False

    async def __aenter__(self) -> LaundryEngine:
        await self.open()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    def _require_ready(self) -> None:
        if not self._ready:
            raise LaundryError("Engine not initialized. Use 'async with LaundryEngine(...) as engine:'")

    def _order_address(self, order_id: str) -> str | None:
        order = self.orders_store.get(order_id)
        return order.delivery_address if order is not None else None

    def _on_error(self, exc: Exception) -> None:
        self._sink.notify_error(f"Failed to restore backup: {exc}")

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    @property
    def orders(self) -> list[Order]:
        self._require_ready()
        return self.orders_store.orders

    async def add_order(self, order: OrderDraft | Mapping[str, Any]) -> str | None:
        self._require_ready()
        return await self.orders_store.add_order(order)

    async def update_order(self, id: str, updates: OrderPatch | Mapping[str, Any]) -> bool:  # noqa: A002
        self._require_ready()
        return await self.orders_store.update_order(id, updates)

    async def delete_order(self, id: str) -> bool:  # noqa: A002
        self._require_ready()
        return await self.orders_store.delete_order(id)

    async def update_order_status(self, order_id: str, status: OrderStatus | str) -> bool:
        self._require_ready()
        return await self.orders_store.update_order_status(order_id, status)

    def get_orders_by_tenant(self, tenant_id: str) -> list[Order]:
        self._require_ready()
        return self.orders_store.get_orders_by_tenant(tenant_id)

    def get_total_revenue(self, tenant_id: str) -> float:
        self._require_ready()
        return self.orders_store.get_total_revenue(tenant_id)

    def get_order_stats(self, tenant_id: str) -> OrderStats:
        self._require_ready()
        return self.orders_store.get_order_stats(tenant_id)

    async def refresh_orders(self) -> bool:
        self._require_ready()
        return await self.orders_store.refresh_orders()

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    @property
    def inventory(self) -> list[InventoryItem]:
        self._require_ready()
        return self.inventory_store.inventory

    async def update_inventory(self, new_inventory: Sequence[InventoryItem | Mapping[str, Any]]) -> bool:
        self._require_ready()
        return await self.inventory_store.update_inventory(new_inventory)

    async def adjust_stock(
        self,
        item_id: str,
        quantity: float,
        movement: StockMovement | str = StockMovement.OUT,
    ) -> bool:
        self._require_ready()
        return await self.inventory_store.adjust_stock(item_id, quantity, movement)

    def get_low_stock_items(self, tenant_id: str | None = None) -> list[InventoryItem]:
        self._require_ready()
        return self.inventory_store.get_low_stock_items(tenant_id)

    def get_inventory_stats(self, tenant_id: str | None = None) -> InventoryStats:
        self._require_ready()
        return self.inventory_store.get_inventory_stats(tenant_id)

    async def refresh_inventory(self) -> bool:
        self._require_ready()
        return await self.inventory_store.refresh_inventory()

    # ------------------------------------------------------------------
    # Drivers and routes
    # ------------------------------------------------------------------

    @property
    def drivers(self) -> list[Driver]:
        self._require_ready()
        return self.drivers_store.drivers

    @property
    def routes(self) -> list[DeliveryRoute]:
        self._require_ready()
        return self.routes_store.routes

    async def add_driver(self, driver: DriverDraft | Mapping[str, Any]) -> str | None:
        self._require_ready()
        return await self.drivers_store.add_driver(driver)

    async def update_driver(self, id: str, updates: DriverPatch | Mapping[str, Any]) -> bool:  # noqa: A002
        self._require_ready()
        return await self.drivers_store.update_driver(id, updates)

    async def remove_driver(self, id: str) -> bool:  # noqa: A002
        self._require_ready()
        return await self.drivers_store.remove_driver(id)

    def get_drivers_by_tenant(self, tenant_id: str) -> list[Driver]:
        self._require_ready()
        return self.drivers_store.get_drivers_by_tenant(tenant_id)

    def get_driver_stats(self, tenant_id: str) -> DriverStats:
        self._require_ready()
        return self.drivers_store.get_driver_stats(tenant_id)

    def get_route_stats(self, tenant_id: str) -> RouteStats:
        self._require_ready()
        return self.routes_store.get_route_stats(tenant_id)

    async def assign_orders_to_driver(self, driver_id: str, order_ids: Iterable[str]) -> bool:
        self._require_ready()
        return await self.assigner.assign(driver_id, order_ids)

    async def optimize_route(self, driver_id: str) -> DeliveryRoute | None:
        self._require_ready()
        return await self.assigner.optimize_route(driver_id)

    async def update_route(self, route_id: str, updates: RoutePatch | Mapping[str, Any]) -> bool:
        self._require_ready()
        return await self.routes_store.update_route(route_id, updates)

    def get_routes_by_driver(self, driver_id: str) -> list[DeliveryRoute]:
        self._require_ready()
        return self.routes_store.get_routes_by_driver(driver_id)

    async def refresh_drivers(self) -> bool:
        self._require_ready()
        refreshed = await asyncio.gather(self.drivers_store.refresh_drivers(), self.routes_store.refresh())
        return all(refreshed)

    # ------------------------------------------------------------------
    # Backup / restore
    # ------------------------------------------------------------------

    async def create_backup(self) -> str:
        """Serialize every collection's current state into a backup document.

        Records come from the in-memory mirrors, which always match the
        last successful write, so a failing read can never produce an
        empty section.
        """
        self._require_ready()
        collections = {store.key: store.dump_records() for store in self._stores}
        document = new_backup(**collections)
        _logger.info(
            "Created backup: %s",
            ", ".join(f"{len(records)} {key}" for key, records in collections.items()),
        )
        return document.to_json()

    async def restore_backup(self, backup: str | bytes) -> bool:
        """Replace every collection with the contents of *backup*.

        All collections are validated before anything is written.  If a
        write fails part way, collections already replaced are written
        back to their previous contents.  The cache is dropped and every
        store reloaded afterwards.
        """
        self._require_ready()

        async def _op() -> bool:
            document = parse_backup(backup)
            sections = document.data.model_dump()
            parsed = [(store, store.parse_records(sections[store.key])) for store in self._stores]
            previous = [(store, tuple(store.items)) for store in self._stores]
            written: list[EntityStore[Any]] = []
            try:
                for store, records in parsed:
                    await store.replace_all(records)
                    written.append(store)
            except Exception:
                await self._roll_back(written, previous)
                raise
            self._gateway.invalidate()
            await asyncio.gather(*(store.load() for store in self._stores))
            self._sink.notify_success(
                f"Data restored successfully from backup created on: {document.timestamp.isoformat()}"
            )
            return True

        return await self.runner.execute(_op) is not None

    async def _roll_back(
        self,
        written: Sequence[EntityStore[Any]],
        previous: Sequence[tuple[EntityStore[Any], tuple[Any, ...]]],
    ) -> None:
        for store, items in previous:
            if store not in written:
                continue
            try:
                await store.replace_all(items)
            except LaundryError:
                _logger.warning("Could not roll back %s after failed restore", store.key, exc_info=True)
