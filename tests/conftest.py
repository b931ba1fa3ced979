from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from household_inventory.config import Settings
from household_inventory.storage import PersistenceGateway, create_gateway
from household_inventory.store import InventoryStore


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'inventory.db'}",
        fallback_path=tmp_path / "inventory_state.json",
        environment="test",
        app_name="Test Household Inventory",
    )


@pytest.fixture()
async def gateway(settings: Settings) -> AsyncIterator[PersistenceGateway]:
    gateway = create_gateway(settings)
    yield gateway
    await gateway.close()


@pytest.fixture()
async def store(gateway: PersistenceGateway) -> AsyncIterator[InventoryStore]:
    store = InventoryStore(gateway)
    await store.load()
    yield store
    await store.wait_until_saved()
