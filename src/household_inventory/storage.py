"""Two-tier persistence of the inventory state.

The primary tier is a SQLAlchemy async engine holding the whole state as one
JSON row. The fallback tier is a flat JSON file that is always written first,
so a primary outage never loses the latest snapshot. Neither tier is allowed
to raise past :class:`PersistenceGateway`.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from . import crud
from .config import Settings, get_settings
from .database import create_engine, create_session_factory, init_database
from .exceptions import StorageQuotaExceededError
from .logging import get_logger
from .schemas import (
    Category,
    InventorySettings,
    InventoryState,
    Item,
    Location,
    default_state,
    new_id,
)
from .validators import (
    coerce_date,
    coerce_quantity,
    coerce_tags,
    coerce_text,
    coerce_value,
    is_positive_int,
)

logger = get_logger(__name__)

_PRIMARY_ERRORS = (SQLAlchemyError, OSError, ValueError)
_FALLBACK_ERRORS = (OSError, ValueError)
_MISC_CATEGORY_NAME = "Misc"
PRIMARY_STALE_KEY = "primaryStale"


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def _identifier(record: Dict[str, Any]) -> str:
    value = record.get("id")
    if value is None:
        return ""
    return str(value).strip()


def _setting(raw: Dict[str, Any], key: str, default: int) -> int:
    value = raw.get(key)
    if is_positive_int(value):
        return value
    return default


def upgrade_state(raw: Any) -> InventoryState:
    """Repair a persisted payload into a snapshot that honours every invariant.

    Raises ``ValueError`` when the payload is not a state record at all.
    """

    if not isinstance(raw, dict):
        raise ValueError("Persisted state is not a mapping")
    if not any(key in raw for key in ("items", "categories", "locations")):
        raise ValueError("Persisted state has no inventory collections")

    settings_raw = raw.get("settings")
    if not isinstance(settings_raw, dict):
        settings_raw = {}
    defaults = InventorySettings()
    settings = InventorySettings(
        low_stock_threshold=_setting(
            settings_raw, "lowStockThreshold", defaults.low_stock_threshold
        ),
        expiring_soon_days=_setting(
            settings_raw, "expiringSoonDays", defaults.expiring_soon_days
        ),
    )

    categories: Dict[str, Category] = {}
    for entry in _as_list(raw.get("categories")):
        if not isinstance(entry, dict):
            continue
        category_id = _identifier(entry)
        if not category_id or category_id in categories:
            continue
        name = str(entry.get("name") or "").strip() or category_id
        categories[category_id] = Category(
            id=category_id, name=name, icon=coerce_text(entry.get("icon"))
        )

    locations: Dict[str, Location] = {}
    for entry in _as_list(raw.get("locations")):
        if not isinstance(entry, dict):
            continue
        location_id = _identifier(entry)
        if not location_id or location_id in locations:
            continue
        name = str(entry.get("name") or "").strip() or location_id
        locations[location_id] = Location(id=location_id, name=name)

    items: Dict[str, Item] = {}
    for entry in _as_list(raw.get("items")):
        if not isinstance(entry, dict):
            continue
        item_id = _identifier(entry)
        name = str(entry.get("name") or "")
        if not item_id or not name.strip() or item_id in items:
            continue
        category_id = str(entry.get("categoryId") or "").strip()
        if not category_id:
            if categories:
                category_id = next(iter(categories))
            else:
                category_id = new_id()
                categories[category_id] = Category(id=category_id, name=_MISC_CATEGORY_NAME)
        elif category_id not in categories:
            categories[category_id] = Category(id=category_id, name=category_id)
        location_id = entry.get("locationId")
        if location_id is not None and str(location_id) not in locations:
            location_id = None
        is_food = entry.get("isFood")
        items[item_id] = Item(
            id=item_id,
            name=name,
            category_id=category_id,
            location_id=None if location_id is None else str(location_id),
            quantity=coerce_quantity(entry.get("quantity")),
            unit=coerce_text(entry.get("unit")),
            expiration_date=coerce_date(entry.get("expirationDate")),
            condition=coerce_text(entry.get("condition")),
            value=coerce_value(entry.get("value")),
            tags=coerce_tags(entry.get("tags")),
            photo_url=coerce_text(entry.get("photoUrl")),
            barcode=coerce_text(entry.get("barcode")),
            notes=coerce_text(entry.get("notes")),
            consumable=entry.get("consumable") is True,
            is_food=is_food if isinstance(is_food, bool) else None,
        )

    return InventoryState(
        items=tuple(items.values()),
        categories=tuple(categories.values()),
        locations=tuple(locations.values()),
        settings=settings,
    )


@dataclass
class FallbackStore:
    """Flat JSON file holding a copy of the state; small but always available."""

    path: Path
    max_bytes: int = 5 * 1024 * 1024

    def __post_init__(self) -> None:
        self.path = Path(self.path)

    def read(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return None
        return json.loads(raw)

    def write(self, payload: Dict[str, Any]) -> None:
        text = json.dumps(payload, indent=2, ensure_ascii=False)
        size = len(text.encode("utf-8"))
        if size > self.max_bytes:
            raise StorageQuotaExceededError(size, self.max_bytes)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(".tmp")
        temp_path.write_text(text, encoding="utf-8")
        temp_path.replace(self.path)


class PrimaryStore:
    """Structured store keeping the state as a single JSON row."""

    def __init__(self, engine: AsyncEngine, key: str = "state") -> None:
        self.engine = engine
        self.key = key
        self._sessions = create_session_factory(engine)
        self._schema_ready = False

    async def _ensure_schema(self) -> None:
        if not self._schema_ready:
            await init_database(self.engine)
            self._schema_ready = True

    async def get(self) -> Optional[Dict[str, Any]]:
        await self._ensure_schema()
        async with self._sessions() as session:
            record = await crud.get_state_record(session, self.key)
            return None if record is None else record.payload

    async def put(self, payload: Dict[str, Any]) -> None:
        await self._ensure_schema()
        async with self._sessions() as session:
            await crud.put_state_record(session, self.key, payload)
            await session.commit()

    async def delete(self) -> bool:
        await self._ensure_schema()
        async with self._sessions() as session:
            deleted = await crud.delete_state_record(session, self.key)
            await session.commit()
            return deleted

    async def dispose(self) -> None:
        await self.engine.dispose()


class PersistenceGateway:
    """Load, save and clear the state across both tiers without ever raising.

    Whenever the primary tier misses a write, the fallback record is flagged
    with ``primaryStale`` so the next load trusts the fallback copy and pushes
    it back into the primary.
    """

    def __init__(self, fallback: FallbackStore, primary: Optional[PrimaryStore] = None) -> None:
        self.fallback = fallback
        self.primary = primary

    async def load(self) -> InventoryState:
        cached = self._load_fallback()
        if cached is not None and cached[1]:
            state = cached[0]
            logger.info(
                "state_loaded", source="fallback", reason="primary_stale", items=len(state.items)
            )
            if await self._put_primary(state):
                self.save_fallback(state)
            return state
        state = await self._load_primary()
        if state is not None:
            self.save_fallback(state)
            logger.info("state_loaded", source="primary", items=len(state.items))
            return state
        if cached is not None:
            logger.info("state_loaded", source="fallback", items=len(cached[0].items))
            return cached[0]
        logger.info("state_seeded")
        return default_state()

    async def save(self, state: InventoryState) -> None:
        self.save_fallback(state)
        if self.primary is None:
            return
        if not await self._put_primary(state):
            self.save_fallback(state, primary_stale=True)

    async def clear(self, seed: Optional[InventoryState] = None) -> None:
        seed = seed or default_state()
        self.save_fallback(seed)
        if self.primary is None:
            return
        try:
            await self.primary.delete()
        except _PRIMARY_ERRORS as exc:
            logger.warning("primary_clear_failed", error=str(exc))
            self.save_fallback(seed, primary_stale=True)

    def save_fallback(self, state: InventoryState, *, primary_stale: bool = False) -> bool:
        """Write the fallback copy; ``primary_stale`` marks it newer than the primary."""

        record = state.to_record()
        if primary_stale and self.primary is not None:
            record[PRIMARY_STALE_KEY] = True
        try:
            self.fallback.write(record)
        except _FALLBACK_ERRORS as exc:
            logger.error("fallback_save_failed", error=str(exc), path=str(self.fallback.path))
            return False
        return True

    async def close(self) -> None:
        if self.primary is not None:
            await self.primary.dispose()

    async def _put_primary(self, state: InventoryState) -> bool:
        if self.primary is None:
            return False
        try:
            await self.primary.put(state.to_record())
        except _PRIMARY_ERRORS as exc:
            logger.warning("primary_save_failed", error=str(exc))
            return False
        return True

    async def _load_primary(self) -> Optional[InventoryState]:
        if self.primary is None:
            return None
        try:
            payload = await self.primary.get()
            if payload is None:
                return None
            return upgrade_state(payload)
        except _PRIMARY_ERRORS as exc:
            logger.warning("primary_load_failed", error=str(exc))
            return None

    def _load_fallback(self) -> Optional[Tuple[InventoryState, bool]]:
        try:
            payload = self.fallback.read()
            if payload is None:
                return None
            return upgrade_state(payload), payload.get(PRIMARY_STALE_KEY) is True
        except _FALLBACK_ERRORS as exc:
            logger.warning("fallback_load_failed", error=str(exc), path=str(self.fallback.path))
            return None


def create_gateway(settings: Settings | None = None) -> PersistenceGateway:
    """Build both tiers from configuration; an unusable primary is left out."""

    settings = settings or get_settings()
    fallback = FallbackStore(settings.fallback_path, max_bytes=settings.fallback_max_bytes)
    primary: Optional[PrimaryStore] = None
    if settings.primary_store_enabled:
        try:
            primary = PrimaryStore(create_engine(settings), key=settings.state_key)
        except (SQLAlchemyError, ImportError) as exc:
            logger.warning("primary_store_unavailable", error=str(exc))
    return PersistenceGateway(fallback, primary)


__all__ = [
    "PRIMARY_STALE_KEY",
    "FallbackStore",
    "PersistenceGateway",
    "PrimaryStore",
    "create_gateway",
    "upgrade_state",
]
