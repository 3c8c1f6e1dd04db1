from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from pylaundry._storage import MemoryByteStore
from pylaundry.models.order import OrderStatus
from pylaundry.persistence import PersistenceGateway
from pylaundry.stores.orders import OrdersStore


@dataclass
class _Sink:
    successes: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def notify_success(self, message: str) -> None:
        self.successes.append(message)

    def notify_error(self, message: str) -> None:
        self.errors.append(message)


@dataclass
class _Ticker:
    now: datetime = datetime(2026, 1, 1, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


class _FlakyStore(MemoryByteStore):
    def __init__(self, *, yield_on_write: bool = False) -> None:
        super().__init__()
        self.fail_writes = False
        self.yield_on_write = yield_on_write

    async def write(self, key: str, data: bytes) -> None:
        if self.yield_on_write:
            await asyncio.sleep(0)
        if self.fail_writes:
            raise OSError("disk full")
        await super().write(key, data)


def _draft(tenant: str = "t1", name: str = "Ada", total: float = 23.0) -> dict[str, object]:
    return {
        "tenantId": tenant,
        "customerName": name,
        "customerPhone": "+15550100",
        "items": [{"itemId": "shirt", "name": "Shirt", "quantity": 2, "price": 10.0}],
        "subtotal": 20.0,
        "tax": 2.0,
        "serviceCharge": 1.0,
        "total": total,
        "deliveryAddress": "1 Main St",
    }


async def _store(
    byte_store: MemoryByteStore | None = None,
    *,
    serialize_mutations: bool = True,
) -> tuple[OrdersStore, _Sink, MemoryByteStore]:
    byte_store = byte_store if byte_store is not None else MemoryByteStore()
    sink = _Sink()
    store = OrdersStore(
        PersistenceGateway(byte_store),
        sink=sink,
        clock=_Ticker(),
        serialize_mutations=serialize_mutations,
    )
    await store.load()
    return store, sink, byte_store


@pytest.mark.asyncio
async def test_add_order_is_visible_and_persisted() -> None:
    store, sink, byte_store = await _store()

    order_id = await store.add_order(_draft())

    assert order_id is not None and order_id.startswith("order_")
    orders = store.get_orders_by_tenant("t1")
    assert [o.id for o in orders] == [order_id]
    assert orders[0].status is OrderStatus.PENDING
    assert orders[0].created_at == orders[0].updated_at
    assert sink.successes == ["Order created successfully"]

    persisted = json.loads((await byte_store.read("orders")) or b"[]")
    assert persisted[0]["id"] == order_id
    assert persisted[0]["customerName"] == "Ada"


@pytest.mark.asyncio
async def test_tenant_query_is_idempotent_and_scoped() -> None:
    store, _, _ = await _store()
    await store.add_order(_draft("t1"))
    await store.add_order(_draft("t2", name="Bo"))

    first = store.get_orders_by_tenant("t1")
    second = store.get_orders_by_tenant("t1")

    assert first == second
    assert len(first) == 1
    assert store.get_orders_by_tenant("nobody") == []


@pytest.mark.asyncio
async def test_add_order_missing_required_fields_is_rejected() -> None:
    store, sink, byte_store = await _store()

    assert await store.add_order({"tenantId": "t1", "customerName": "Ada", "items": []}) is None
    assert store.orders == []
    assert await byte_store.read("orders") is None
    assert store.error == "Invalid order data: missing required fields"
    assert sink.errors == ["Orders operation failed: Invalid order data: missing required fields"]


@pytest.mark.asyncio
async def test_add_order_rejects_unknown_fields() -> None:
    store, sink, _ = await _store()
    draft = _draft()
    draft["couponCode"] = "FREE"

    assert await store.add_order(draft) is None
    assert store.orders == []
    assert len(sink.errors) == 1


@pytest.mark.asyncio
async def test_update_order_merges_patch_and_stamps_updated_at() -> None:
    store, _, _ = await _store()
    order_id = await store.add_order(_draft())
    assert order_id is not None
    before = store.get(order_id)
    assert before is not None

    assert await store.update_order(order_id, {"notes": "no starch", "status": "ready"}) is True

    after = store.get(order_id)
    assert after is not None
    assert after.notes == "no starch"
    assert after.status is OrderStatus.READY
    assert after.customer_name == "Ada"
    assert after.created_at == before.created_at
    assert after.updated_at > before.updated_at


@pytest.mark.asyncio
async def test_failed_write_leaves_order_unchanged() -> None:
    byte_store = _FlakyStore()
    store, sink, _ = await _store(byte_store)
    order_id = await store.add_order(_draft())
    assert order_id is not None
    durable_before = await byte_store.read("orders")

    byte_store.fail_writes = True
    assert await store.update_order(order_id, {"notes": "changed"}) is False

    order = store.get(order_id)
    assert order is not None and order.notes == ""
    assert await byte_store.read("orders") == durable_before
    assert store.error == "Failed to update order"
    assert sink.errors[-1] == "Orders operation failed: Failed to update order"


@pytest.mark.asyncio
async def test_update_and_delete_unknown_id_fail() -> None:
    store, sink, _ = await _store()

    assert await store.update_order("order_missing", {"notes": "x"}) is False
    assert await store.delete_order("order_missing") is False
    assert len(sink.errors) == 2


@pytest.mark.asyncio
async def test_delete_order_removes_it() -> None:
    store, sink, _ = await _store()
    keep = await store.add_order(_draft())
    drop = await store.add_order(_draft())
    assert keep is not None and drop is not None

    assert await store.delete_order(drop) is True
    assert [o.id for o in store.orders] == [keep]
    assert sink.successes[-1] == "Order deleted successfully"


@pytest.mark.asyncio
async def test_update_order_status_validates_status() -> None:
    store, _, _ = await _store()
    order_id = await store.add_order(_draft())
    assert order_id is not None

    assert await store.update_order_status(order_id, OrderStatus.DELIVERED) is True
    assert await store.update_order_status(order_id, "lost-in-wash") is False
    order = store.get(order_id)
    assert order is not None and order.status is OrderStatus.DELIVERED


@pytest.mark.asyncio
async def test_null_values_cannot_reset_required_fields() -> None:
    store, sink, _ = await _store()
    order_id = await store.add_order(_draft(total=23.0))
    assert order_id is not None
    assert await store.update_order_status(order_id, OrderStatus.DELIVERED) is True

    assert await store.update_order(order_id, {"status": None, "total": None}) is False

    order = store.get(order_id)
    assert order is not None
    assert order.status is OrderStatus.DELIVERED
    assert order.total == 23.0
    assert "status cannot be cleared" in sink.errors[-1]


@pytest.mark.asyncio
async def test_pickup_date_can_be_cleared() -> None:
    store, _, _ = await _store()
    order_id = await store.add_order(_draft())
    assert order_id is not None

    assert await store.update_order(order_id, {"pickupDate": "2026-01-02T09:00:00Z"}) is True
    scheduled = store.get(order_id)
    assert scheduled is not None and scheduled.pickup_date is not None

    assert await store.update_order(order_id, {"pickupDate": None}) is True
    cleared = store.get(order_id)
    assert cleared is not None and cleared.pickup_date is None


@pytest.mark.asyncio
async def test_order_stats_and_revenue() -> None:
    store, _, _ = await _store()
    a = await store.add_order(_draft(total=23.0))
    b = await store.add_order(_draft(total=10.0))
    await store.add_order(_draft(total=5.0))
    await store.add_order(_draft("t2", total=99.0))
    assert a is not None and b is not None
    await store.update_order_status(a, "processing")
    await store.update_order_status(b, "delivered")

    stats = store.get_order_stats("t1")

    assert stats.total == 3
    assert stats.pending == 1
    assert stats.processing == 1
    assert stats.completed == 1
    assert stats.revenue == pytest.approx(38.0)
    assert store.get_total_revenue("t1") == pytest.approx(38.0)
    assert store.get_total_revenue("t3") == 0


@pytest.mark.asyncio
async def test_mutation_before_load_fails() -> None:
    sink = _Sink()
    store = OrdersStore(PersistenceGateway(MemoryByteStore()), sink=sink)

    assert await store.add_order(_draft()) is None
    assert store.error == "Orders store is not loaded yet"


@pytest.mark.asyncio
async def test_corrupt_collection_loads_as_empty() -> None:
    byte_store = MemoryByteStore({"orders": b'[{"customerName": "no id"}]'})
    store, _, _ = await _store(byte_store)

    assert store.is_loaded
    assert store.orders == []


@pytest.mark.asyncio
async def test_refresh_picks_up_external_changes() -> None:
    byte_store = MemoryByteStore()
    store, _, _ = await _store(byte_store)
    order_id = await store.add_order(_draft())
    await byte_store.write("orders", b'[{"id": "order_ext", "tenantId": "t1", "customerName": "Cy"}]')

    # The cached collection hides the external write until a refresh.
    await store.load()
    assert [o.id for o in store.orders] == [order_id]

    assert await store.refresh_orders() is True
    assert [o.id for o in store.orders] == ["order_ext"]


@pytest.mark.asyncio
async def test_concurrent_adds_are_serialized() -> None:
    byte_store = _FlakyStore(yield_on_write=True)
    store, _, _ = await _store(byte_store)

    ids = await asyncio.gather(*(store.add_order(_draft()) for _ in range(5)))

    assert all(ids)
    assert len(store.orders) == 5
    assert len(json.loads((await byte_store.read("orders")) or b"[]")) == 5


@pytest.mark.asyncio
async def test_unserialized_concurrent_adds_lose_updates() -> None:
    byte_store = _FlakyStore(yield_on_write=True)
    store, _, _ = await _store(byte_store, serialize_mutations=False)

    ids = await asyncio.gather(store.add_order(_draft()), store.add_order(_draft()))

    assert all(ids)
    assert len(store.orders) == 1
