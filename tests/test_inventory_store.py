from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from pylaundry._constants import DEFAULT_SERVICE_FLAGS
from pylaundry._storage import MemoryByteStore
from pylaundry.models.inventory import InventoryItem, StockMovement
from pylaundry.persistence import PersistenceGateway
from pylaundry.stores.inventory import InventoryStore

_NOW = datetime(2026, 3, 1, 8, 0, tzinfo=UTC)


@dataclass
class _Sink:
    successes: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def notify_success(self, message: str) -> None:
        self.successes.append(message)

    def notify_error(self, message: str) -> None:
        self.errors.append(message)


async def _store(
    items: list[dict[str, object]] | None = None,
    *,
    fallback: tuple[InventoryItem, ...] = (),
) -> tuple[InventoryStore, _Sink, MemoryByteStore]:
    initial = {"inventory": json.dumps(items).encode()} if items is not None else None
    byte_store = MemoryByteStore(initial)
    sink = _Sink()
    store = InventoryStore(PersistenceGateway(byte_store), sink=sink, clock=lambda: _NOW, fallback=fallback)
    await store.load()
    return store, sink, byte_store


def _item(item_id: str, stock: float, reorder: float = 5, **extra: object) -> dict[str, object]:
    return {"id": item_id, "name": item_id.title(), "currentStock": stock, "reorderLevel": reorder, **extra}


@pytest.mark.asyncio
async def test_default_catalog_used_when_nothing_persisted() -> None:
    defaults = (InventoryItem(id="item_detergent", name="Detergent", current_stock=10),)
    store, _, _ = await _store(fallback=defaults)

    assert store.inventory == list(defaults)


@pytest.mark.asyncio
async def test_stored_records_are_backfilled_with_service_flags() -> None:
    store, _, _ = await _store([_item("soap", 3)])

    assert store.inventory[0].enabled_for_services == DEFAULT_SERVICE_FLAGS


@pytest.mark.asyncio
async def test_removing_more_than_stocked_clamps_to_zero() -> None:
    store, _, _ = await _store([_item("soap", 15)])

    assert await store.adjust_stock("soap", 20, StockMovement.OUT) is True

    item = store.get("soap")
    assert item is not None and item.current_stock == 0


@pytest.mark.asyncio
async def test_removal_below_reorder_level_flags_low_stock(caplog: pytest.LogCaptureFixture) -> None:
    store, _, _ = await _store([_item("softener", 50, reorder=20), _item("bags", 100, reorder=20)])

    with caplog.at_level(logging.WARNING, logger="pylaundry.stores.inventory"):
        assert await store.adjust_stock("softener", 40) is True

    item = store.get("softener")
    assert item is not None
    assert item.current_stock == 10
    assert item.is_low_stock
    assert [i.id for i in store.get_low_stock_items()] == ["softener"]
    assert any("Low stock alert" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_restock_is_capped_and_stamps_restock_date() -> None:
    store, sink, _ = await _store([_item("hangers", 80, maxCapacity=100)])

    assert await store.adjust_stock("hangers", 50, "in") is True

    item = store.get("hangers")
    assert item is not None
    assert item.current_stock == 100
    assert item.last_restock_date == _NOW
    assert sink.successes[-1] == "Stock restocked successfully"


@pytest.mark.asyncio
async def test_invalid_movements_are_rejected() -> None:
    store, sink, _ = await _store([_item("soap", 10)])

    assert await store.adjust_stock("soap", -5) is False
    assert await store.adjust_stock("soap", 5, "sideways") is False
    assert await store.adjust_stock("missing", 1) is False
    assert len(sink.errors) == 3
    item = store.get("soap")
    assert item is not None and item.current_stock == 10


@pytest.mark.asyncio
async def test_update_inventory_replaces_collection() -> None:
    store, sink, byte_store = await _store([_item("soap", 10)])

    assert await store.update_inventory([_item("bleach", 4), _item("starch", 8)]) is True

    assert [i.id for i in store.inventory] == ["bleach", "starch"]
    persisted = json.loads((await byte_store.read("inventory")) or b"[]")
    assert [row["id"] for row in persisted] == ["bleach", "starch"]
    assert sink.successes == ["Inventory updated successfully"]


@pytest.mark.asyncio
async def test_update_inventory_rejects_bad_shapes() -> None:
    store, sink, _ = await _store([_item("soap", 10)])

    assert await store.update_inventory({"id": "soap"}) is False  # type: ignore[arg-type]
    assert store.error == "Invalid inventory data format"
    assert await store.update_inventory([_item("a", 1), _item("a", 2)]) is False
    assert [i.id for i in store.inventory] == ["soap"]
    assert len(sink.errors) == 2


@pytest.mark.asyncio
async def test_add_update_and_remove_item() -> None:
    store, _, _ = await _store([])

    item_id = await store.add_item({"tenantId": "t1", "name": "Lint rollers", "currentStock": 12, "unit": "pcs"})
    assert item_id is not None and item_id.startswith("item_")

    assert await store.update_item(item_id, {"reorderLevel": 15, "costPerUnit": 0.5}) is True
    item = store.get(item_id)
    assert item is not None
    assert item.reorder_level == 15
    assert item.is_low_stock

    # Stock only changes through movements.
    assert await store.update_item(item_id, {"currentStock": 99}) is False

    assert await store.remove_item(item_id) is True
    assert store.inventory == []


@pytest.mark.asyncio
async def test_shared_items_are_visible_to_every_tenant() -> None:
    store, _, _ = await _store(
        [
            _item("shared", 1),
            _item("mine", 1, tenantId="t1"),
            _item("theirs", 1, tenantId="t2"),
        ]
    )

    assert [i.id for i in store.query("t1")] == ["shared", "mine"]
    assert [i.id for i in store.get_low_stock_items("t2")] == ["shared", "theirs"]


@pytest.mark.asyncio
async def test_inventory_stats() -> None:
    store, _, _ = await _store(
        [
            _item("soap", 0, costPerUnit=2.0),
            _item("bleach", 3, costPerUnit=1.5),
            _item("bags", 40, costPerUnit=0.25),
        ]
    )

    stats = store.get_inventory_stats()

    assert stats.total_items == 3
    assert stats.out_of_stock == 1
    assert stats.low_stock == 2
    assert stats.total_value == pytest.approx(14.5)
