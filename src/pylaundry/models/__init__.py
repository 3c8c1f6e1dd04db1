"""Data models for persisted laundry entities."""

from pylaundry.models._base import LaundryBaseModel, LaundryDraft, LaundryPatch, Timestamp, coerce, new_id, utcnow
from pylaundry.models.driver import (
    ROUTE_TRANSITIONS,
    DeliveryRoute,
    Driver,
    DriverDraft,
    DriverPatch,
    DriverStats,
    DriverStatus,
    Location,
    RoutePatch,
    RouteStats,
    RouteStatus,
    RouteStop,
    VehicleInfo,
)
from pylaundry.models.inventory import (
    InventoryDraft,
    InventoryItem,
    InventoryPatch,
    InventoryStats,
    StockMovement,
    apply_movement,
)
from pylaundry.models.order import Order, OrderDraft, OrderItem, OrderPatch, OrderStats, OrderStatus

__all__ = [
    "DeliveryRoute",
    "Driver",
    "DriverDraft",
    "DriverPatch",
    "DriverStats",
    "DriverStatus",
    "InventoryDraft",
    "InventoryItem",
    "InventoryPatch",
    "InventoryStats",
    "LaundryBaseModel",
    "LaundryDraft",
    "LaundryPatch",
    "Location",
    "Order",
    "OrderDraft",
    "OrderItem",
    "OrderPatch",
    "OrderStats",
    "OrderStatus",
    "ROUTE_TRANSITIONS",
    "RoutePatch",
    "RouteStats",
    "RouteStatus",
    "RouteStop",
    "StockMovement",
    "Timestamp",
    "VehicleInfo",
    "apply_movement",
    "coerce",
    "new_id",
    "utcnow",
]
