"""pylaundry - Tenant-scoped operational state engine for laundry businesses."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pylaundry")
except PackageNotFoundError:
    __version__ = "0+local"
from pylaundry.cache import CacheStore
from pylaundry.config import EngineConfig
from pylaundry.engine import LaundryEngine
from pylaundry.exceptions import (
    LaundryConfigError,
    LaundryCryptoError,
    LaundryError,
    LaundryNotFoundError,
    LaundryPersistenceError,
    LaundryStorageError,
    LaundryValidationError,
)
from pylaundry.models import (
    DeliveryRoute,
    Driver,
    DriverDraft,
    DriverPatch,
    DriverStats,
    DriverStatus,
    InventoryDraft,
    InventoryItem,
    InventoryPatch,
    InventoryStats,
    Order,
    OrderDraft,
    OrderItem,
    OrderPatch,
    OrderStats,
    OrderStatus,
    RoutePatch,
    RouteStats,
    RouteStatus,
    RouteStop,
    StockMovement,
)
from pylaundry.persistence import PersistenceGateway
from pylaundry.routing import FlatStopTimePolicy, RouteAssigner, StopTimePolicy
from pylaundry.runner import AsyncOperationRunner, LoggingNotificationSink, NotificationSink

__all__ = [
    "__version__",
    "AsyncOperationRunner",
    "CacheStore",
    "DeliveryRoute",
    "Driver",
    "DriverDraft",
    "DriverPatch",
    "DriverStats",
    "DriverStatus",
    "EngineConfig",
    "FlatStopTimePolicy",
    "InventoryDraft",
    "InventoryItem",
    "InventoryPatch",
    "InventoryStats",
    "LaundryConfigError",
    "LaundryCryptoError",
    "LaundryEngine",
    "LaundryError",
    "LaundryNotFoundError",
    "LaundryPersistenceError",
    "LaundryStorageError",
    "LaundryValidationError",
    "LoggingNotificationSink",
    "NotificationSink",
    "Order",
    "OrderDraft",
    "OrderItem",
    "OrderPatch",
    "OrderStats",
    "OrderStatus",
    "PersistenceGateway",
    "RouteAssigner",
    "RoutePatch",
    "RouteStats",
    "RouteStatus",
    "RouteStop",
    "StockMovement",
    "StopTimePolicy",
]
