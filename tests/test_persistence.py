from __future__ import annotations

import json
from dataclasses import dataclass, field

import pytest

from pylaundry._storage import MemoryByteStore
from pylaundry.cache import CacheStore
from pylaundry.exceptions import LaundryStorageError
from pylaundry.models.order import Order, OrderStatus
from pylaundry.persistence import PersistenceGateway, decode_value, encode_value


@dataclass
class _CountingStore:
    data: dict[str, bytes] = field(default_factory=dict)
    reads: int = 0
    fail_reads: bool = False
    fail_writes: bool = False

    async def read(self, key: str) -> bytes | None:
        self.reads += 1
        if self.fail_reads:
            raise LaundryStorageError("disk unavailable", key=key)
        return self.data.get(key)

    async def write(self, key: str, data: bytes) -> None:
        if self.fail_writes:
            raise LaundryStorageError("quota exceeded", key=key)
        self.data[key] = data

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)

    async def clear(self) -> None:
        self.data.clear()


@pytest.mark.asyncio
async def test_get_item_returns_fallback_when_nothing_stored() -> None:
    gateway = PersistenceGateway(MemoryByteStore())
    assert await gateway.get_item("orders", fallback_value=[]) == []


@pytest.mark.asyncio
async def test_get_item_returns_fallback_when_store_raises() -> None:
    store = _CountingStore(fail_reads=True)
    gateway = PersistenceGateway(store)
    sentinel = ["fallback"]

    assert await gateway.get_item("orders", fallback_value=sentinel) is sentinel


@pytest.mark.asyncio
async def test_get_item_returns_fallback_on_malformed_json() -> None:
    store = MemoryByteStore({"orders": b"{not json"})
    gateway = PersistenceGateway(store)

    assert await gateway.get_item("orders", fallback_value="F") == "F"


@pytest.mark.asyncio
async def test_get_item_returns_fallback_when_parse_fails() -> None:
    store = MemoryByteStore({"orders": b'{"unexpected": "object"}'})
    gateway = PersistenceGateway(store)

    def parse(raw: object) -> list[object]:
        if not isinstance(raw, list):
            raise ValueError("expected a list")
        return raw

    assert await gateway.get_item("orders", fallback_value=[], parse=parse) == []


@pytest.mark.asyncio
async def test_set_then_get_returns_value_from_cache() -> None:
    store = _CountingStore()
    gateway = PersistenceGateway(store)

    assert await gateway.set_item("orders", [{"id": "a"}]) is True
    assert await gateway.get_item("orders") == [{"id": "a"}]
    assert store.reads == 0


@pytest.mark.asyncio
async def test_get_item_warms_cache_after_durable_read() -> None:
    store = _CountingStore(data={"orders": b'[{"id":"a"}]'})
    gateway = PersistenceGateway(store)

    first = await gateway.get_item("orders", fallback_value=[])
    second = await gateway.get_item("orders", fallback_value=[])

    assert first == second == [{"id": "a"}]
    assert store.reads == 1


@pytest.mark.asyncio
async def test_use_cache_false_always_reads_durable_copy() -> None:
    store = _CountingStore(data={"orders": b"[]"})
    gateway = PersistenceGateway(store)

    await gateway.get_item("orders", use_cache=False)
    await gateway.get_item("orders", use_cache=False)

    assert store.reads == 2
    assert "orders" not in gateway.cache


@pytest.mark.asyncio
async def test_set_item_reports_failure_and_leaves_cache_alone() -> None:
    store = _CountingStore(fail_writes=True)
    cache = CacheStore()
    cache.set("orders", ["old"])
    gateway = PersistenceGateway(store, cache)

    assert await gateway.set_item("orders", ["new"]) is False
    assert cache.get("orders") == ["old"]
    assert "orders" not in store.data


@pytest.mark.asyncio
async def test_set_item_without_cache_invalidates_entry() -> None:
    cache = CacheStore()
    cache.set("orders", ["stale"])
    gateway = PersistenceGateway(MemoryByteStore(), cache)

    assert await gateway.set_item("orders", ["fresh"], use_cache=False) is True
    assert "orders" not in cache
    assert await gateway.get_item("orders") == ["fresh"]


@pytest.mark.asyncio
async def test_remove_and_clear_drop_cache_entries() -> None:
    store = MemoryByteStore()
    gateway = PersistenceGateway(store)
    await gateway.set_item("orders", [1])
    await gateway.set_item("drivers", [2])

    assert await gateway.remove_item("orders") is True
    assert await gateway.get_item("orders", fallback_value="gone") == "gone"

    assert await gateway.clear() is True
    assert store.keys() == []
    assert len(gateway.cache) == 0


def test_encode_value_uses_camel_case_aliases() -> None:
    order = Order(id="order_1", tenant_id="t1", customer_name="Ada", status=OrderStatus.READY)
    decoded = json.loads(encode_value([order]))

    assert decoded[0]["tenantId"] == "t1"
    assert decoded[0]["customerName"] == "Ada"
    assert decoded[0]["status"] == "ready"
    assert "createdAt" in decoded[0]


def test_decode_value_rejects_empty_payload() -> None:
    with pytest.raises(ValueError):
        decode_value(b"   ")
