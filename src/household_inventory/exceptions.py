"""Error taxonomy of the household inventory core."""
from __future__ import annotations


class InventoryError(Exception):
    """Base class for errors raised by this package."""


class ReferentialConstraintError(InventoryError, ValueError):
    """A write names a category or location that is not in the snapshot."""

    def __init__(self, entity: str, identifier: str | None, *, item_id: str | None = None):
        self.entity = entity
        self.identifier = identifier
        self.item_id = item_id
        target = f" on item '{item_id}'" if item_id else ""
        super().__init__(f"{entity} '{identifier}' does not exist{target}")


class InventoryValidationError(InventoryError, ValueError):
    """A mutation received a value outside the accepted domain."""


class SettingsValidationError(InventoryValidationError):
    """A settings patch carried an unknown key or a non-positive value."""


class StoreNotReadyError(InventoryError, RuntimeError):
    """A mutation was issued while the store was not ready."""


class LoadFailedError(InventoryError):
    """The initial durable read could not produce a usable state."""


class StorageError(InventoryError, OSError):
    """A persistence tier could not complete an operation."""


class StorageQuotaExceededError(StorageError):
    """The serialized state does not fit into the fallback store."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"State of {size} bytes exceeds the {limit} byte fallback ceiling")


__all__ = [
    "InventoryError",
    "ReferentialConstraintError",
    "InventoryValidationError",
    "SettingsValidationError",
    "StoreNotReadyError",
    "LoadFailedError",
    "StorageError",
    "StorageQuotaExceededError",
]
