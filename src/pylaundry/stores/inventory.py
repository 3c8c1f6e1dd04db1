"""Inventory store: catalog replacement, item edits and stock movements."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pylaundry._constants import INVENTORY_KEY
from pylaundry.exceptions import LaundryValidationError
from pylaundry.models._base import coerce, new_id
from pylaundry.models.inventory import (
    InventoryDraft,
    InventoryItem,
    InventoryPatch,
    InventoryStats,
    StockMovement,
    apply_movement,
)
from pylaundry.stores._base import EntityStore

_logger = logging.getLogger(__name__)

_SUCCESS = "Inventory updated successfully"


class InventoryStore(EntityStore[InventoryItem]):
    """Inventory mirror.

    Items without a ``tenant_id`` form a shared catalog and are visible to
    every tenant query.
    """

    key = INVENTORY_KEY
    model = InventoryItem
    label = "Inventory"
    id_prefix = "item"

    @property
    def inventory(self) -> list[InventoryItem]:
        return self.items

    def query(self, tenant_id: str | None) -> list[InventoryItem]:
        if tenant_id is None:
            return self.items
        return [item for item in self._items if item.tenant_id in (None, tenant_id)]

    async def update_inventory(self, new_inventory: Sequence[InventoryItem | Mapping[str, Any]]) -> bool:
        """Replace the whole inventory collection."""

        def change(_items: tuple[InventoryItem, ...]) -> tuple[tuple[InventoryItem, ...], bool]:
            if isinstance(new_inventory, (str, bytes, Mapping)) or not isinstance(new_inventory, Sequence):
                raise LaundryValidationError("Invalid inventory data format")
            replaced = tuple(coerce(InventoryItem, item) for item in new_inventory)
            ids = [item.id for item in replaced]
            if len(set(ids)) != len(ids):
                raise LaundryValidationError("Invalid inventory data: duplicate item ids", field="id")
            return replaced, True

        result = await self._mutate(change, failure="Failed to save inventory to storage", success=_SUCCESS)
        return result is not None

    async def add_item(self, item: InventoryDraft | Mapping[str, Any]) -> str | None:
        def build() -> InventoryItem:
            draft = coerce(InventoryDraft, item)
            if not draft.name.strip():
                raise LaundryValidationError("Invalid inventory data: name is required", field="name")
            return InventoryItem.model_validate({**draft.model_dump(), "id": new_id(self.id_prefix)})

        return await self._insert(build, failure="Failed to save inventory to storage", success=_SUCCESS)

    async def update_item(self, item_id: str, updates: InventoryPatch | Mapping[str, Any]) -> bool:
        return await self._replace(
            item_id,
            lambda existing: self._patched(existing, updates, InventoryPatch),
            failure="Failed to save inventory to storage",
            success=_SUCCESS,
        )

    async def remove_item(self, item_id: str) -> bool:
        return await self._remove(item_id, failure="Failed to save inventory to storage", success=_SUCCESS)

    async def adjust_stock(
        self,
        item_id: str,
        quantity: float,
        movement: StockMovement | str = StockMovement.OUT,
    ) -> bool:
        """Move stock in or out of an item; the level never drops below zero."""

        def transform(existing: InventoryItem) -> InventoryItem:
            if quantity < 0:
                raise LaundryValidationError(f"quantity must be non-negative, got {quantity}", field="quantity")
            try:
                kind = StockMovement(movement)
            except ValueError as exc:
                raise LaundryValidationError(f"Unknown stock movement {movement!r}", field="movement") from exc
            changes: dict[str, Any] = {
                "current_stock": apply_movement(existing.current_stock, quantity, kind, existing.max_capacity)
            }
            if kind is StockMovement.IN:
                changes["last_restock_date"] = self._clock()
            updated = existing.model_copy(update=changes)
            if updated.is_low_stock:
                _logger.warning("Low stock alert: %s is at %s %s", updated.name, updated.current_stock, updated.unit)
            return updated

        verb = "restocked" if str(movement) == StockMovement.IN.value else "updated"
        return await self._replace(
            item_id,
            transform,
            failure="Failed to save inventory to storage",
            success=f"Stock {verb} successfully",
        )

    def get_low_stock_items(self, tenant_id: str | None = None) -> list[InventoryItem]:
        return [item for item in self.query(tenant_id) if item.is_low_stock]

    def aggregate(self, tenant_id: str | None) -> InventoryStats:
        items = self.query(tenant_id)
        return InventoryStats(
            total_items=len(items),
            low_stock=sum(1 for item in items if item.is_low_stock),
            out_of_stock=sum(1 for item in items if item.current_stock <= 0),
            total_value=sum(item.current_stock * item.cost_per_unit for item in items),
        )

    def get_inventory_stats(self, tenant_id: str | None = None) -> InventoryStats:
        return self.aggregate(tenant_id)

    async def refresh_inventory(self) -> bool:
        return await self.refresh()
