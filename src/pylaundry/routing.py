"""Order-to-driver assignment and route construction.

Routes are built from a driver's assignments in insertion order; there is
no geographic optimization.  Per-stop timing comes from a
:class:`StopTimePolicy` so a smarter estimate can be dropped in.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from pylaundry._constants import MINUTES_PER_STOP, UNKNOWN_ADDRESS
from pylaundry.models._base import new_id, utcnow
from pylaundry.models.driver import DeliveryRoute, RouteStatus, RouteStop
from pylaundry.stores.drivers import DriversStore, RoutesStore

_logger = logging.getLogger(__name__)

AddressResolver = Callable[[str], str | None]


class StopTimePolicy(Protocol):
    """Minutes from departure until stop *index* (0-based) is reached."""

    def estimate(self, index: int, order_id: str, address: str) -> int:
        ...


@dataclass(frozen=True)
class FlatStopTimePolicy:
    """Every stop adds the same number of minutes."""

    minutes_per_stop: int = MINUTES_PER_STOP

    def estimate(self, index: int, order_id: str, address: str) -> int:
        return self.minutes_per_stop * (index + 1)


def build_route(
    driver_id: str,
    order_ids: Sequence[str],
    *,
    policy: StopTimePolicy,
    resolve_address: AddressResolver | None = None,
    tenant_id: str = "",
    route_id: str | None = None,
    now: datetime | None = None,
) -> DeliveryRoute:
    """Build a pending route visiting *order_ids* in the given order.

    ``estimated_time`` is the sum of the per-stop estimates.
    """
    stops: list[RouteStop] = []
    for index, order_id in enumerate(order_ids):
        address = (resolve_address(order_id) if resolve_address is not None else None) or UNKNOWN_ADDRESS
        stops.append(
            RouteStop(
                order_id=order_id,
                address=address,
                estimated_minutes=policy.estimate(index, order_id, address),
            )
        )
    return DeliveryRoute(
        id=route_id or new_id("route"),
        tenant_id=tenant_id,
        driver_id=driver_id,
        orders=tuple(order_ids),
        ordered_route=tuple(stops),
        status=RouteStatus.PENDING,
        estimated_time=sum(stop.estimated_minutes for stop in stops),
        created_at=now or utcnow(),
    )


class RouteAssigner:
    """Assign orders to drivers and turn assignments into routes."""

    def __init__(
        self,
        drivers: DriversStore,
        routes: RoutesStore,
        *,
        policy: StopTimePolicy | None = None,
        resolve_address: AddressResolver | None = None,
    ) -> None:
        self._drivers = drivers
        self._routes = routes
        self._policy: StopTimePolicy = policy if policy is not None else FlatStopTimePolicy()
        self._resolve_address = resolve_address

    @property
    def policy(self) -> StopTimePolicy:
        return self._policy

    async def assign(self, driver_id: str, order_ids: Iterable[str]) -> bool:
        return await self._drivers.assign_orders(driver_id, order_ids)

    async def optimize_route(self, driver_id: str) -> DeliveryRoute | None:
        """Build and persist a route for the driver's current assignments.

        Returns ``None`` when the driver is unknown, has nothing assigned,
        or the route could not be saved.
        """
        driver = self._drivers.get(driver_id)
        if driver is None:
            _logger.debug("No route for unknown driver %s", driver_id)
            return None
        if not driver.assigned_orders:
            _logger.debug("Driver %s has no assigned orders", driver_id)
            return None

        route = build_route(
            driver.id,
            driver.assigned_orders,
            policy=self._policy,
            resolve_address=self._resolve_address,
            tenant_id=driver.tenant_id,
            route_id=self._routes.new_route_id(),
        )
        if await self._routes.add_route(route) is None:
            return None
        _logger.info(
            "Built route %s for driver %s: %d stop(s), %d min",
            route.id,
            driver.id,
            len(route.ordered_route),
            route.estimated_time,
        )
        return route
