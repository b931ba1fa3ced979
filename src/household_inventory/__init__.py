"""Household inventory core: state store, persistence and CSV interchange."""
from __future__ import annotations

from .codec import HEADER, decode_items, encode_items, export_csv
from .config import Settings, get_settings
from .exceptions import (
    InventoryError,
    InventoryValidationError,
    LoadFailedError,
    ReferentialConstraintError,
    SettingsValidationError,
    StorageError,
    StorageQuotaExceededError,
    StoreNotReadyError,
)
from .importer import ImportMode, ImportSummary, export_inventory, import_csv, plan_import
from .logging import get_logger, setup_logging
from .lookup import NullProductLookup, ProductSuggestion, resolve_barcode
from .queries import ItemQuery, ItemView, SortBy, expiring_soon, filter_items, low_stock
from .schemas import (
    Category,
    InventorySettings,
    InventoryState,
    Item,
    ItemDraft,
    Location,
    default_state,
)
from .storage import FallbackStore, PersistenceGateway, PrimaryStore, create_gateway
from .store import InventoryStore, StoreStatus, create_store

__all__ = [
    "HEADER",
    "Category",
    "FallbackStore",
    "ImportMode",
    "ImportSummary",
    "InventoryError",
    "InventorySettings",
    "InventoryState",
    "InventoryStore",
    "InventoryValidationError",
    "Item",
    "ItemDraft",
    "ItemQuery",
    "ItemView",
    "LoadFailedError",
    "Location",
    "NullProductLookup",
    "PersistenceGateway",
    "PrimaryStore",
    "ProductSuggestion",
    "ReferentialConstraintError",
    "Settings",
    "SettingsValidationError",
    "SortBy",
    "StorageError",
    "StorageQuotaExceededError",
    "StoreNotReadyError",
    "StoreStatus",
    "create_gateway",
    "create_store",
    "decode_items",
    "default_state",
    "encode_items",
    "expiring_soon",
    "export_csv",
    "export_inventory",
    "filter_items",
    "get_logger",
    "get_settings",
    "import_csv",
    "low_stock",
    "plan_import",
    "resolve_barcode",
    "setup_logging",
]
