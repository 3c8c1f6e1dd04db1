"""Drivers and delivery-routes stores."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pylaundry._constants import DRIVERS_KEY, ROUTES_KEY
from pylaundry._redact import redact_for_log
from pylaundry.exceptions import LaundryValidationError
from pylaundry.models._base import coerce, new_id
from pylaundry.models.driver import (
    ROUTE_TRANSITIONS,
    DeliveryRoute,
    Driver,
    DriverDraft,
    DriverPatch,
    DriverStats,
    DriverStatus,
    RoutePatch,
    RouteStats,
    RouteStatus,
)
from pylaundry.stores._base import EntityStore

_logger = logging.getLogger(__name__)


class DriversStore(EntityStore[Driver]):
    key = DRIVERS_KEY
    model = Driver
    label = "Drivers"
    id_prefix = "driver"

    @property
    def drivers(self) -> list[Driver]:
        return self.items

    async def add_driver(self, driver: DriverDraft | Mapping[str, Any]) -> str | None:
        def build() -> Driver:
            draft = coerce(DriverDraft, driver)
            if not draft.tenant_id or not draft.name:
                raise LaundryValidationError("Invalid driver data: missing required fields")
            now = self._clock()
            created = Driver.model_validate(
                {**draft.model_dump(), "id": new_id(self.id_prefix), "created_at": now, "updated_at": now}
            )
            _logger.debug("Registering driver %s: %s", created.id, redact_for_log(created))
            return created

        return await self._insert(build, failure="Failed to save driver", success="Driver added successfully")

    async def update_driver(self, id: str, updates: DriverPatch | Mapping[str, Any]) -> bool:  # noqa: A002
        return await self._replace(
            id,
            lambda existing: self._patched(existing, updates, DriverPatch, updated_at=self._clock()),
            failure="Failed to update driver",
            success="Driver updated successfully",
        )

    async def remove_driver(self, id: str) -> bool:  # noqa: A002
        return await self._remove(id, failure="Failed to remove driver", success="Driver removed successfully")

    async def assign_orders(self, driver_id: str, order_ids: Iterable[str]) -> bool:
        """Append *order_ids* to the driver's assignments and mark it busy.

        Ids already assigned are skipped; insertion order is preserved.
        """
        incoming = tuple(order_ids)

        def transform(existing: Driver) -> Driver:
            if any(not isinstance(oid, str) or not oid for oid in incoming):
                raise LaundryValidationError("Order ids must be non-empty strings", field="order_ids")
            merged = existing.assigned_orders + tuple(oid for oid in incoming if oid not in existing.assigned_orders)
            patch = DriverPatch(assigned_orders=merged, status=DriverStatus.BUSY if merged else existing.status)
            return patch.apply_to(existing, updated_at=self._clock())

        return await self._replace(
            driver_id,
            transform,
            failure="Failed to assign orders",
            success=f"Assigned {len(incoming)} order(s) to driver",
        )

    def get_drivers_by_tenant(self, tenant_id: str) -> list[Driver]:
        return self.query(tenant_id)

    def aggregate(self, tenant_id: str) -> DriverStats:
        drivers = self.query(tenant_id)
        return DriverStats(
            total=len(drivers),
            available=sum(1 for d in drivers if d.status is DriverStatus.AVAILABLE),
            busy=sum(1 for d in drivers if d.status is DriverStatus.BUSY),
            offline=sum(1 for d in drivers if d.status is DriverStatus.OFFLINE),
        )

    def get_driver_stats(self, tenant_id: str) -> DriverStats:
        return self.aggregate(tenant_id)

    async def refresh_drivers(self) -> bool:
        return await self.refresh()


class RoutesStore(EntityStore[DeliveryRoute]):
    """Append-only route log.  Only status and timing fields may change."""

    key = ROUTES_KEY
    model = DeliveryRoute
    label = "Routes"
    id_prefix = "route"

    @property
    def routes(self) -> list[DeliveryRoute]:
        return self.items

    async def add_route(self, route: DeliveryRoute) -> str | None:
        def build() -> DeliveryRoute:
            if self.get(route.id) is not None:
                raise LaundryValidationError(f"Route {route.id!r} already exists", field="id")
            return route

        return await self._insert(build, failure="Failed to save route")

    async def update_route(self, route_id: str, updates: RoutePatch | Mapping[str, Any]) -> bool:
        def transform(existing: DeliveryRoute) -> DeliveryRoute:
            patch = coerce(RoutePatch, updates)
            target = patch.status
            if target is not None and target is not existing.status:
                if target not in ROUTE_TRANSITIONS[existing.status]:
                    raise LaundryValidationError(
                        f"Route cannot move from {existing.status.value} to {target.value}",
                        field="status",
                    )
            return patch.apply_to(existing)

        return await self._replace(
            route_id,
            transform,
            failure="Failed to update route",
            success="Route updated successfully",
        )

    def get_routes_by_driver(self, driver_id: str) -> list[DeliveryRoute]:
        return [route for route in self._items if route.driver_id == driver_id]

    def aggregate(self, tenant_id: str) -> RouteStats:
        routes = self.query(tenant_id)
        return RouteStats(
            total=len(routes),
            pending=sum(1 for r in routes if r.status is RouteStatus.PENDING),
            in_progress=sum(1 for r in routes if r.status is RouteStatus.IN_PROGRESS),
            completed=sum(1 for r in routes if r.status is RouteStatus.COMPLETED),
        )

    def get_route_stats(self, tenant_id: str) -> RouteStats:
        return self.aggregate(tenant_id)

    def new_route_id(self) -> str:
        return new_id(self.id_prefix)
