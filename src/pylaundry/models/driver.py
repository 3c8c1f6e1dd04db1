"""Driver and delivery-route models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from pylaundry.models._base import LaundryBaseModel, LaundryDraft, LaundryPatch, Timestamp, utcnow


class DriverStatus(StrEnum):
    AVAILABLE = "available"
    BUSY = "busy"
    OFFLINE = "offline"


class RouteStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


# Allowed forward moves of a route's status.
ROUTE_TRANSITIONS: dict[RouteStatus, frozenset[RouteStatus]] = {
    RouteStatus.PENDING: frozenset({RouteStatus.IN_PROGRESS}),
    RouteStatus.IN_PROGRESS: frozenset({RouteStatus.COMPLETED}),
    RouteStatus.COMPLETED: frozenset(),
}


class VehicleInfo(LaundryBaseModel):
    type: str = ""
    plate: str = ""


class Location(LaundryBaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    address: str = ""


def _dedupe(order_ids: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(order_ids))


class _DriverBody(LaundryBaseModel):
    tenant_id: str = ""
    name: str = ""
    phone: str = ""
    email: str = ""
    status: DriverStatus = DriverStatus.AVAILABLE
    assigned_orders: tuple[str, ...] = ()
    vehicle_info: VehicleInfo = Field(default_factory=VehicleInfo)
    current_location: Location | None = None

    @field_validator("assigned_orders")
    @classmethod
    def _unique_orders(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return _dedupe(value)

    @model_validator(mode="after")
    def _sync_status(self) -> _DriverBody:
        """Keep ``status`` consistent with ``assigned_orders``.

        A driver holding orders is busy; a busy driver without orders is
        available again.  Offline drivers without orders stay offline.
        """
        if self.assigned_orders and self.status is not DriverStatus.BUSY:
            object.__setattr__(self, "status", DriverStatus.BUSY)
        elif not self.assigned_orders and self.status is DriverStatus.BUSY:
            object.__setattr__(self, "status", DriverStatus.AVAILABLE)
        return self


class DriverDraft(_DriverBody, LaundryDraft):
    """Payload for registering a driver."""

    model_config = ConfigDict(extra="forbid")


class Driver(_DriverBody):
    id: str
    created_at: Timestamp = Field(default_factory=utcnow)
    updated_at: Timestamp = Field(default_factory=utcnow)


class DriverPatch(LaundryPatch):
    """Updatable driver fields."""

    clearable = frozenset({"current_location"})

    name: str | None = None
    phone: str | None = None
    email: str | None = None
    status: DriverStatus | None = None
    assigned_orders: tuple[str, ...] | None = None
    vehicle_info: VehicleInfo | None = None
    current_location: Location | None = None


class DriverStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int = 0
    available: int = 0
    busy: int = 0
    offline: int = 0


class RouteStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0


class RouteStop(LaundryBaseModel):
    """One stop of a route: the order, where to go, minutes from departure."""

    order_id: str
    address: str
    estimated_minutes: int = Field(
        ge=0,
        validation_alias=AliasChoices("estimatedMinutes", "estimated_minutes", "estimatedTime"),
        serialization_alias="estimatedMinutes",
    )


class DeliveryRoute(LaundryBaseModel):
    """A driver's timed stop sequence.

    ``orders`` is the snapshot of the driver's assignments taken when the
    route was built; it never changes afterwards.
    """

    id: str
    tenant_id: str = ""
    driver_id: str
    orders: tuple[str, ...] = ()
    ordered_route: tuple[RouteStop, ...] = Field(
        default=(),
        validation_alias=AliasChoices("orderedRoute", "ordered_route", "optimizedRoute"),
        serialization_alias="orderedRoute",
    )
    status: RouteStatus = RouteStatus.PENDING
    estimated_time: int = Field(default=0, ge=0)
    actual_time: int | None = Field(default=None, ge=0)
    start_time: Timestamp | None = None
    end_time: Timestamp | None = None
    created_at: Timestamp = Field(default_factory=utcnow)


class RoutePatch(LaundryPatch):
    """Updatable route fields.  Stops and the order snapshot are fixed."""

    clearable = frozenset({"actual_time", "start_time", "end_time"})

    status: RouteStatus | None = None
    actual_time: int | None = Field(default=None, ge=0)
    start_time: Timestamp | None = None
    end_time: Timestamp | None = None
