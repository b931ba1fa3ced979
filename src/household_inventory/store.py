"""Inventory store owning the current snapshot.

Mutations run synchronously against the in-memory snapshot and return
immediately; the durable write is scheduled on the running event loop and
never awaited by the caller.
"""
from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional

from . import reducers
from .config import Settings
from .exceptions import LoadFailedError, StoreNotReadyError
from .logging import get_logger
from .schemas import (
    Category,
    InventorySettings,
    InventoryState,
    Item,
    ItemDraft,
    Location,
    default_state,
)
from .storage import PersistenceGateway, create_gateway

logger = get_logger(__name__)

LOAD_ERROR_MESSAGE = "Failed to load data"


class StoreStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class InventoryStore:
    """Single writer of the inventory state."""

    def __init__(self, gateway: PersistenceGateway) -> None:
        self.gateway = gateway
        self.status = StoreStatus.LOADING
        self.error: Optional[str] = None
        self._state = default_state()
        self._save_lock = asyncio.Lock()
        self._pending: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Snapshot access
    # ------------------------------------------------------------------
    @property
    def state(self) -> InventoryState:
        return self._state

    @property
    def items(self) -> tuple[Item, ...]:
        return self._state.items

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._state.categories

    @property
    def locations(self) -> tuple[Location, ...]:
        return self._state.locations

    @property
    def settings(self) -> InventorySettings:
        return self._state.settings

    @property
    def loading(self) -> bool:
        return self.status is StoreStatus.LOADING

    @property
    def ready(self) -> bool:
        return self.status is StoreStatus.READY

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def load(self) -> InventoryState:
        """Read the durable state once; a failure is terminal for this store."""

        if self.status is not StoreStatus.LOADING:
            if self.status is StoreStatus.FAILED:
                raise LoadFailedError(LOAD_ERROR_MESSAGE)
            return self._state
        try:
            state = await self.gateway.load()
        except Exception as exc:
            self.status = StoreStatus.FAILED
            self.error = LOAD_ERROR_MESSAGE
            logger.error("state_load_failed", error=str(exc))
            raise LoadFailedError(LOAD_ERROR_MESSAGE) from exc
        self._state = state
        self.status = StoreStatus.READY
        return state

    async def wait_until_saved(self) -> None:
        """Wait for every scheduled durable write to finish."""

        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.wait_until_saved()
        await self.gateway.close()

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------
    def add_item(self, draft: ItemDraft) -> Item:
        state, item = reducers.add_item(self._require_ready(), draft)
        self._commit(state)
        return item

    def update_item(self, item: Item) -> InventoryState:
        return self._commit(reducers.update_item(self._require_ready(), item))

    def delete_item(self, item_id: str) -> InventoryState:
        return self._commit(reducers.delete_item(self._require_ready(), item_id))

    def use_one(self, item_id: str) -> InventoryState:
        return self._commit(reducers.use_one(self._require_ready(), item_id))

    # ------------------------------------------------------------------
    # Categories and locations
    # ------------------------------------------------------------------
    def add_category(self, name: str, icon: Optional[str] = None) -> Category:
        state, category = reducers.add_category(self._require_ready(), name, icon)
        self._commit(state)
        return category

    def rename_category(self, category_id: str, name: str) -> InventoryState:
        return self._commit(reducers.rename_category(self._require_ready(), category_id, name))

    def delete_category(self, category_id: str) -> InventoryState:
        return self._commit(reducers.delete_category(self._require_ready(), category_id))

    def add_location(self, name: str) -> Location:
        state, location = reducers.add_location(self._require_ready(), name)
        self._commit(state)
        return location

    def rename_location(self, location_id: str, name: str) -> InventoryState:
        return self._commit(reducers.rename_location(self._require_ready(), location_id, name))

    def delete_location(self, location_id: str) -> InventoryState:
        return self._commit(reducers.delete_location(self._require_ready(), location_id))

    # ------------------------------------------------------------------
    # Settings and whole-state operations
    # ------------------------------------------------------------------
    def update_settings(self, patch: Mapping[str, Any]) -> InventoryState:
        return self._commit(reducers.update_settings(self._require_ready(), patch))

    def reset_all(self) -> InventoryState:
        self._require_ready()
        seed = default_state()
        self._state = seed
        logger.info("state_reset")
        self._schedule(lambda: self.gateway.clear(seed), seed)
        return seed

    def replace_all(
        self,
        items: Iterable[Item],
        categories: Iterable[Category],
        locations: Iterable[Location],
    ) -> InventoryState:
        state = reducers.replace_all(self._require_ready(), items, categories, locations)
        return self._commit(state)

    def merge_all(
        self,
        items: Iterable[Item],
        categories: Iterable[Category],
        locations: Iterable[Location],
    ) -> InventoryState:
        state = reducers.merge_all(self._require_ready(), items, categories, locations)
        return self._commit(state)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _require_ready(self) -> InventoryState:
        if self.status is not StoreStatus.READY:
            raise StoreNotReadyError(f"Store is {self.status.value}; mutations are not permitted")
        return self._state

    def _commit(self, state: InventoryState) -> InventoryState:
        if state is self._state:
            return state
        self._state = state
        self._schedule(lambda: self.gateway.save(state), state)
        return state

    def _schedule(
        self, operation: Callable[[], Awaitable[None]], state: InventoryState
    ) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Without a loop only the synchronous tier can be written.
            self.gateway.save_fallback(state, primary_stale=True)
            logger.warning("primary_write_skipped", reason="no running event loop")
            return
        task = loop.create_task(self._run_serialized(operation))
        self._pending.add(task)
        task.add_done_callback(self._on_write_done)

    async def _run_serialized(self, operation: Callable[[], Awaitable[None]]) -> None:
        async with self._save_lock:
            await operation()

    def _on_write_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("state_write_failed", error=str(exc))


def create_store(settings: Settings | None = None) -> InventoryStore:
    """Build an unloaded store wired to both persistence tiers."""

    return InventoryStore(create_gateway(settings))


__all__ = ["LOAD_ERROR_MESSAGE", "InventoryStore", "StoreStatus", "create_store"]
