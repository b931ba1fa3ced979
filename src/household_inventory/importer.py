"""Bulk import: reconcile decoded CSV rows against the current state."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

from .codec import DecodedBatch, decode_items, export_csv
from .logging import get_logger
from .reducers import overlay_by_id, union_by_id
from .schemas import Category, InventoryState, Item, Location
from .store import InventoryStore

logger = get_logger(__name__)


class ImportMode(str, Enum):
    REPLACE = "replace"
    MERGE = "merge"


@dataclass(frozen=True)
class ImportSummary:
    added: int = 0
    updated: int = 0
    ignored: int = 0

    @property
    def message(self) -> str:
        return (
            f"Import completed. Added: {self.added}, updated: {self.updated}, "
            f"ignored: {self.ignored}"
        )

    def to_dict(self) -> dict[str, int]:
        return {"added": self.added, "updated": self.updated, "ignored": self.ignored}


@dataclass(frozen=True)
class ImportPlan:
    """Collections an import produces together with its outcome tally."""

    mode: ImportMode
    candidates: Tuple[Item, ...]
    items: Tuple[Item, ...]
    categories: Tuple[Category, ...]
    locations: Tuple[Location, ...]
    summary: ImportSummary


def plan_import(state: InventoryState, batch: DecodedBatch, mode: ImportMode) -> ImportPlan:
    """Compute the post-import collections without touching any store."""

    mode = ImportMode(mode)
    existing_ids = {item.id for item in state.items}
    added = updated = 0
    for item in batch.items:
        if mode is ImportMode.MERGE and item.id in existing_ids:
            updated += 1
        else:
            added += 1
    # Repeated ids inside one file collapse to the last row.
    candidates = overlay_by_id((), batch.items)
    if mode is ImportMode.REPLACE:
        items = candidates
    else:
        items = overlay_by_id(state.items, candidates)
    return ImportPlan(
        mode=mode,
        candidates=candidates,
        items=items,
        categories=union_by_id(state.categories, batch.new_categories),
        locations=union_by_id(state.locations, batch.new_locations),
        summary=ImportSummary(added=added, updated=updated, ignored=batch.ignored),
    )


def import_csv(
    store: InventoryStore, text: str, mode: Union[ImportMode, str] = ImportMode.MERGE
) -> ImportSummary:
    """Decode ``text`` and apply it to ``store`` in one synchronous pass."""

    mode = ImportMode(mode)
    state = store.state
    batch = decode_items(text, state.categories, state.locations)
    if batch.empty:
        return ImportSummary()
    plan = plan_import(state, batch, mode)
    if mode is ImportMode.REPLACE:
        store.replace_all(plan.items, plan.categories, plan.locations)
    else:
        store.merge_all(plan.candidates, batch.new_categories, batch.new_locations)
    logger.info(
        "import_completed",
        mode=mode.value,
        new_categories=len(batch.new_categories),
        new_locations=len(batch.new_locations),
        **plan.summary.to_dict(),
    )
    return plan.summary


def export_inventory(source: Union[InventoryStore, InventoryState]) -> str:
    """Render every item of a store or snapshot as CSV text."""

    state = source.state if isinstance(source, InventoryStore) else source
    return export_csv(state)


__all__ = [
    "ImportMode",
    "ImportPlan",
    "ImportSummary",
    "export_inventory",
    "import_csv",
    "plan_import",
]
