"""Order models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from pylaundry.models._base import LaundryBaseModel, LaundryDraft, LaundryPatch, Timestamp, utcnow


class OrderStatus(StrEnum):
    PENDING = "pending"
    RECEIVED = "received"
    PROCESSING = "processing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderItem(LaundryBaseModel):
    """One line of an order."""

    item_id: str
    name: str
    quantity: int = Field(default=1, ge=1)
    price: float = Field(default=0.0, ge=0)
    service: str = ""


class _OrderBody(LaundryBaseModel):
    tenant_id: str = ""
    customer_id: str = ""
    customer_name: str = ""
    customer_phone: str = ""
    items: tuple[OrderItem, ...] = ()
    subtotal: float = 0.0
    tax: float = 0.0
    discount: float = 0.0
    service_charge: float = 0.0
    total: float = 0.0
    payment_method: str = ""
    service_type: str = ""
    pickup_date: Timestamp | None = None
    pickup_time: str = ""
    delivery_address: str = ""
    notes: str = ""
    status: OrderStatus = OrderStatus.PENDING

    def totals_consistent(self, tolerance: float = 0.005) -> bool:
        """Whether ``total == subtotal + tax + service_charge - discount``.

        The engine never recomputes totals; callers supply consistent
        figures and can use this to check them.
        """
        expected = self.subtotal + self.tax + self.service_charge - self.discount
        return abs(self.total - expected) <= tolerance


class OrderDraft(_OrderBody, LaundryDraft):
    """Payload for creating an order (no id or timestamps yet)."""

    model_config = ConfigDict(extra="forbid")


class Order(_OrderBody):
    """A persisted order."""

    id: str
    created_at: Timestamp = Field(default_factory=utcnow)
    updated_at: Timestamp = Field(default_factory=utcnow)


class OrderPatch(LaundryPatch):
    """Updatable order fields."""

    clearable = frozenset({"pickup_date"})

    customer_id: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    items: tuple[OrderItem, ...] | None = None
    subtotal: float | None = None
    tax: float | None = None
    discount: float | None = None
    service_charge: float | None = None
    total: float | None = None
    payment_method: str | None = None
    service_type: str | None = None
    pickup_date: Timestamp | None = None
    pickup_time: str | None = None
    delivery_address: str | None = None
    notes: str | None = None
    status: OrderStatus | None = None


class OrderStats(BaseModel):
    """Per-tenant order counters.  ``completed`` counts delivered orders."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    pending: int = 0
    processing: int = 0
    completed: int = 0
    revenue: float = 0.0
