"""Orders store."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pylaundry._constants import ORDERS_KEY
from pylaundry._redact import redact_for_log
from pylaundry.exceptions import LaundryValidationError
from pylaundry.models._base import coerce, new_id
from pylaundry.models.order import Order, OrderDraft, OrderPatch, OrderStats, OrderStatus
from pylaundry.stores._base import EntityStore

_logger = logging.getLogger(__name__)


class OrdersStore(EntityStore[Order]):
    key = ORDERS_KEY
    model = Order
    label = "Orders"
    id_prefix = "order"

    @property
    def orders(self) -> list[Order]:
        return self.items

    async def add_order(self, order: OrderDraft | Mapping[str, Any]) -> str | None:
        """Create an order and return its new id, or ``None`` on failure."""

        def build() -> Order:
            draft = coerce(OrderDraft, order)
            if not draft.tenant_id or not draft.customer_name or not draft.items:
                raise LaundryValidationError("Invalid order data: missing required fields")
            now = self._clock()
            created = Order.model_validate(
                {**draft.model_dump(), "id": new_id(self.id_prefix), "created_at": now, "updated_at": now}
            )
            _logger.debug("Creating order %s: %s", created.id, redact_for_log(created))
            return created

        return await self._insert(build, failure="Failed to save order", success="Order created successfully")

    async def update_order(self, id: str, updates: OrderPatch | Mapping[str, Any]) -> bool:  # noqa: A002
        return await self._replace(
            id,
            lambda existing: self._patched(existing, updates, OrderPatch, updated_at=self._clock()),
            failure="Failed to update order",
            success="Order updated successfully",
        )

    async def delete_order(self, id: str) -> bool:  # noqa: A002
        return await self._remove(id, failure="Failed to delete order", success="Order deleted successfully")

    async def update_order_status(self, order_id: str, status: OrderStatus | str) -> bool:
        return await self.update_order(order_id, {"status": status})

    def get_orders_by_tenant(self, tenant_id: str) -> list[Order]:
        return self.query(tenant_id)

    def get_total_revenue(self, tenant_id: str) -> float:
        return sum(order.total for order in self.query(tenant_id))

    def aggregate(self, tenant_id: str) -> OrderStats:
        orders = self.query(tenant_id)
        return OrderStats(
            total=len(orders),
            pending=sum(1 for o in orders if o.status is OrderStatus.PENDING),
            processing=sum(1 for o in orders if o.status is OrderStatus.PROCESSING),
            completed=sum(1 for o in orders if o.status is OrderStatus.DELIVERED),
            revenue=sum(o.total for o in orders),
        )

    def get_order_stats(self, tenant_id: str) -> OrderStats:
        return self.aggregate(tenant_id)

    async def refresh_orders(self) -> bool:
        return await self.refresh()
