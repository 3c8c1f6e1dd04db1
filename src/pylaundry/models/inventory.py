"""Inventory models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pylaundry._constants import DEFAULT_SERVICE_FLAGS
from pylaundry.models._base import LaundryBaseModel, LaundryDraft, LaundryPatch, Timestamp


class StockMovement(StrEnum):
    IN = "in"
    OUT = "out"


def _default_service_flags() -> dict[str, bool]:
    return dict(DEFAULT_SERVICE_FLAGS)


class _InventoryBody(LaundryBaseModel):
    tenant_id: str | None = None
    name: str
    description: str = ""
    category: str = ""
    price: float = Field(default=0.0, ge=0)
    is_available: bool = True
    current_stock: float = 0.0
    reorder_level: float = Field(default=0.0, ge=0)
    max_capacity: float | None = Field(default=None, gt=0)
    unit: str = ""
    last_restock_date: Timestamp | None = None
    cost_per_unit: float = Field(default=0.0, ge=0)
    supplier: str = ""
    # Records stored before per-service flags existed get the default map.
    enabled_for_services: dict[str, bool] = Field(default_factory=_default_service_flags)

    @field_validator("current_stock")
    @classmethod
    def _clamp_stock(cls, value: float) -> float:
        return max(0.0, value)

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.reorder_level

    def is_enabled_for(self, service: str) -> bool:
        return self.enabled_for_services.get(service, False)


class InventoryDraft(_InventoryBody, LaundryDraft):
    """Payload for creating an inventory item."""

    model_config = ConfigDict(extra="forbid")


class InventoryItem(_InventoryBody):
    """A stocked item or service garment type."""

    id: str


class InventoryPatch(LaundryPatch):
    """Updatable inventory fields.  Stock changes go through movements."""

    clearable = frozenset({"max_capacity"})

    name: str | None = None
    description: str | None = None
    category: str | None = None
    price: float | None = Field(default=None, ge=0)
    is_available: bool | None = None
    reorder_level: float | None = Field(default=None, ge=0)
    max_capacity: float | None = Field(default=None, gt=0)
    unit: str | None = None
    cost_per_unit: float | None = Field(default=None, ge=0)
    supplier: str | None = None
    enabled_for_services: dict[str, bool] | None = None


class InventoryStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_items: int = 0
    low_stock: int = 0
    out_of_stock: int = 0
    total_value: float = 0.0


def apply_movement(current: float, quantity: float, movement: StockMovement, max_capacity: float | None = None) -> float:
    """New stock level after a movement, clamped to ``[0, max_capacity]``."""
    if quantity < 0:
        raise ValueError(f"quantity must be non-negative, got {quantity}")
    delta = quantity if movement is StockMovement.IN else -quantity
    new_stock = max(0.0, current + delta)
    if max_capacity is not None:
        new_stock = min(max_capacity, new_stock)
    return new_stock
