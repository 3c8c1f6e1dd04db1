"""Tenant-scoped entity stores."""

from pylaundry.stores._base import EntityStore
from pylaundry.stores.drivers import DriversStore, RoutesStore
from pylaundry.stores.inventory import InventoryStore
from pylaundry.stores.orders import OrdersStore

__all__ = [
    "DriversStore",
    "EntityStore",
    "InventoryStore",
    "OrdersStore",
    "RoutesStore",
]
