from __future__ import annotations

import json

from household_inventory.codec import HEADER, decode_items
from household_inventory.config import Settings
from household_inventory.importer import (
    ImportMode,
    ImportSummary,
    export_inventory,
    import_csv,
    plan_import,
)
from household_inventory.schemas import Item, default_state
from household_inventory.store import InventoryStore

CSV_HEADER = ",".join(HEADER)


def _seed_item(store: InventoryStore, item_id: str, quantity: int) -> None:
    category = store.categories[0]
    item = Item(id=item_id, name=f"Item {item_id}", category_id=category.id, quantity=quantity)
    store.merge_all([item], [], [])


async def test_merge_updates_existing_item(store: InventoryStore) -> None:
    _seed_item(store, "A", 2)
    text = "id,name,category,quantity\nA,Item A,Clothes,10"

    summary = import_csv(store, text, ImportMode.MERGE)

    assert summary == ImportSummary(added=0, updated=1, ignored=0)
    assert [(item.id, item.quantity) for item in store.items] == [("A", 10)]


async def test_import_creates_missing_category(store: InventoryStore) -> None:
    before = len(store.categories)
    text = "id,name,category\nt-1,Drill,Garage Tools\nt-2,Saw,Garage Tools"

    summary = import_csv(store, text)

    assert summary.added == 2
    created = [category for category in store.categories if category.name == "Garage Tools"]
    assert len(created) == 1
    assert len(store.categories) == before + 1
    assert {item.category_id for item in store.items} == {created[0].id}


async def test_merging_twice_is_idempotent(store: InventoryStore) -> None:
    text = "\n".join(
        [
            "id,name,category,location,quantity,tags",
            "x,Lantern,Camping,Shed,2,light;outdoor",
            "y,Stove,Camping,Shed,1,",
        ]
    )

    first = import_csv(store, text)
    after_first = store.state
    second = import_csv(store, text)

    assert first == ImportSummary(added=2, updated=0, ignored=0)
    assert second == ImportSummary(added=0, updated=2, ignored=0)
    assert store.items == after_first.items
    assert store.categories == after_first.categories
    assert store.locations == after_first.locations


async def test_replace_supersedes_items_and_keeps_settings(store: InventoryStore) -> None:
    _seed_item(store, "old", 1)
    store.update_settings({"lowStockThreshold": 4})
    categories_before = store.categories
    text = "id,name,category\nn-1,Umbrella,Weather\n,Broken row,Misc\nn-1,Umbrella XL,Weather"

    summary = import_csv(store, text, "replace")

    assert summary == ImportSummary(added=2, updated=0, ignored=1)
    assert summary.message == "Import completed. Added: 2, updated: 0, ignored: 1"
    assert [(item.id, item.name) for item in store.items] == [("n-1", "Umbrella XL")]
    assert store.categories[: len(categories_before)] == categories_before
    assert store.categories[-1].name == "Weather"
    assert store.settings.low_stock_threshold == 4


async def test_empty_input_changes_nothing(store: InventoryStore) -> None:
    before = store.state

    assert import_csv(store, "", ImportMode.REPLACE) == ImportSummary()
    assert store.state is before


async def test_import_is_persisted(store: InventoryStore, settings: Settings) -> None:
    import_csv(store, "id,name,quantity\np-1,Paper towels,6")
    await store.wait_until_saved()

    payload = json.loads(settings.fallback_path.read_text(encoding="utf-8"))
    assert [(item["id"], item["quantity"]) for item in payload["items"]] == [("p-1", 6)]


async def test_export_then_import_round_trip(store: InventoryStore) -> None:
    import_csv(store, "id,name,category,location,notes\nr-1,Rope,Tools,Garage,\"10 m, blue\"")

    exported = export_inventory(store)

    assert exported.split("\n")[0] == CSV_HEADER
    assert export_inventory(store.state) == exported
    assert import_csv(store, exported) == ImportSummary(added=0, updated=1, ignored=0)
    assert store.items[0].notes == "10 m, blue"


def test_plan_import_is_pure() -> None:
    state = default_state()
    batch = decode_items("id,name\nq,Quilt", state.categories, state.locations)

    plan = plan_import(state, batch, ImportMode.MERGE)

    assert [item.id for item in plan.items] == ["q"]
    assert plan.summary.added == 1
    assert state.items == ()
