"""Pure state transitions.

Every function takes an :class:`InventoryState` and returns a new one; the
input snapshot is never modified. Unknown identifiers are silent no-ops.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Tuple, TypeVar

from pydantic.alias_generators import to_camel

from .exceptions import (
    InventoryValidationError,
    ReferentialConstraintError,
    SettingsValidationError,
)
from .schemas import (
    Category,
    InventorySettings,
    InventoryState,
    Item,
    ItemDraft,
    Location,
    Record,
    new_id,
)
from .validators import is_positive_int

RecordT = TypeVar("RecordT", bound=Record)

FALLBACK_CATEGORY_NAME = "Misc"


def _settings_keys() -> dict[str, str]:
    keys: dict[str, str] = {}
    for name in InventorySettings.model_fields:
        keys[name] = name
        keys[to_camel(name)] = name
    return keys


_SETTINGS_KEYS = _settings_keys()


def _require_name(name: str, entity: str) -> str:
    candidate = (name or "").strip()
    if not candidate:
        raise InventoryValidationError(f"{entity} name cannot be empty")
    return candidate


def overlay_by_id(existing: Iterable[RecordT], incoming: Iterable[RecordT]) -> Tuple[RecordT, ...]:
    """Overwrite records sharing an id in place and append the new ones."""

    merged = {record.id: record for record in existing}
    for record in incoming:
        merged[record.id] = record
    return tuple(merged.values())


def union_by_id(existing: Iterable[RecordT], incoming: Iterable[RecordT]) -> Tuple[RecordT, ...]:
    """Keep every existing record and append incoming ids not seen yet."""

    merged = {record.id: record for record in existing}
    for record in incoming:
        merged.setdefault(record.id, record)
    return tuple(merged.values())


def check_item_references(state: InventoryState, item: Item) -> None:
    if state.get_category(item.category_id) is None:
        raise ReferentialConstraintError("Category", item.category_id, item_id=item.id)
    if item.location_id is not None and state.get_location(item.location_id) is None:
        raise ReferentialConstraintError("Location", item.location_id, item_id=item.id)


def validate_state(state: InventoryState) -> None:
    """Raise when ids repeat or an item points at a missing category/location."""

    for label, records in (
        ("item", state.items),
        ("category", state.categories),
        ("location", state.locations),
    ):
        seen: set[str] = set()
        for record in records:
            if record.id in seen:
                raise InventoryValidationError(f"Duplicate {label} id '{record.id}'")
            seen.add(record.id)
    for item in state.items:
        check_item_references(state, item)


# ----------------------------------------------------------------------
# Items
# ----------------------------------------------------------------------
def add_item(state: InventoryState, draft: ItemDraft) -> Tuple[InventoryState, Item]:
    item = Item.from_draft(draft)
    check_item_references(state, item)
    return state.model_copy(update={"items": state.items + (item,)}), item


def update_item(state: InventoryState, item: Item) -> InventoryState:
    if state.get_item(item.id) is None:
        return state
    check_item_references(state, item)
    items = tuple(item if current.id == item.id else current for current in state.items)
    return state.model_copy(update={"items": items})


def delete_item(state: InventoryState, item_id: str) -> InventoryState:
    if state.get_item(item_id) is None:
        return state
    items = tuple(item for item in state.items if item.id != item_id)
    return state.model_copy(update={"items": items})


def use_one(state: InventoryState, item_id: str) -> InventoryState:
    target = state.get_item(item_id)
    if target is None or not target.consumable:
        return state
    updated = target.model_copy(update={"quantity": max(0, target.quantity - 1)})
    items = tuple(updated if item.id == item_id else item for item in state.items)
    return state.model_copy(update={"items": items})


# ----------------------------------------------------------------------
# Categories and locations
# ----------------------------------------------------------------------
def add_category(
    state: InventoryState, name: str, icon: str | None = None
) -> Tuple[InventoryState, Category]:
    category = Category(id=new_id(), name=_require_name(name, "Category"), icon=icon)
    return state.model_copy(update={"categories": state.categories + (category,)}), category


def rename_category(state: InventoryState, category_id: str, name: str) -> InventoryState:
    candidate = _require_name(name, "Category")
    if state.get_category(category_id) is None:
        return state
    categories = tuple(
        category.model_copy(update={"name": candidate}) if category.id == category_id else category
        for category in state.categories
    )
    return state.model_copy(update={"categories": categories})


def delete_category(state: InventoryState, category_id: str) -> InventoryState:
    """Remove a category and move its items to the first remaining one.

    With no category left, the items move to a "Misc" category that reuses
    the deleted id; it is added to the list so the reference resolves.
    """

    if state.get_category(category_id) is None:
        return state
    remaining = tuple(category for category in state.categories if category.id != category_id)
    if remaining:
        fallback = remaining[0]
    else:
        fallback = Category(id=category_id, name=FALLBACK_CATEGORY_NAME)
    moved = False
    items = []
    for item in state.items:
        if item.category_id == category_id:
            item = item.model_copy(update={"category_id": fallback.id})
            moved = True
        items.append(item)
    if moved and not remaining:
        remaining = (fallback,)
    return state.model_copy(update={"categories": remaining, "items": tuple(items)})


def add_location(state: InventoryState, name: str) -> Tuple[InventoryState, Location]:
    location = Location(id=new_id(), name=_require_name(name, "Location"))
    return state.model_copy(update={"locations": state.locations + (location,)}), location


def rename_location(state: InventoryState, location_id: str, name: str) -> InventoryState:
    candidate = _require_name(name, "Location")
    if state.get_location(location_id) is None:
        return state
    locations = tuple(
        location.model_copy(update={"name": candidate}) if location.id == location_id else location
        for location in state.locations
    )
    return state.model_copy(update={"locations": locations})


def delete_location(state: InventoryState, location_id: str) -> InventoryState:
    if state.get_location(location_id) is None:
        return state
    locations = tuple(location for location in state.locations if location.id != location_id)
    items = tuple(
        item.model_copy(update={"location_id": None}) if item.location_id == location_id else item
        for item in state.items
    )
    return state.model_copy(update={"locations": locations, "items": items})


# ----------------------------------------------------------------------
# Settings and whole-state operations
# ----------------------------------------------------------------------
def update_settings(state: InventoryState, patch: Mapping[str, Any]) -> InventoryState:
    values = state.settings.model_dump()
    for key, value in patch.items():
        field_name = _SETTINGS_KEYS.get(key)
        if field_name is None:
            raise SettingsValidationError(f"Unknown setting '{key}'")
        if not is_positive_int(value):
            raise SettingsValidationError(f"Setting '{key}' must be a positive integer")
        values[field_name] = value
    return state.model_copy(update={"settings": InventorySettings(**values)})


def replace_all(
    state: InventoryState,
    items: Iterable[Item],
    categories: Iterable[Category],
    locations: Iterable[Location],
) -> InventoryState:
    replaced = state.model_copy(
        update={
            "items": tuple(items),
            "categories": tuple(categories),
            "locations": tuple(locations),
        }
    )
    validate_state(replaced)
    return replaced


def merge_all(
    state: InventoryState,
    items: Iterable[Item],
    categories: Iterable[Category],
    locations: Iterable[Location],
) -> InventoryState:
    merged = state.model_copy(
        update={
            "items": overlay_by_id(state.items, items),
            "categories": union_by_id(state.categories, categories),
            "locations": union_by_id(state.locations, locations),
        }
    )
    validate_state(merged)
    return merged


__all__ = [
    "FALLBACK_CATEGORY_NAME",
    "add_category",
    "add_item",
    "add_location",
    "check_item_references",
    "delete_category",
    "delete_item",
    "delete_location",
    "merge_all",
    "overlay_by_id",
    "rename_category",
    "rename_location",
    "replace_all",
    "union_by_id",
    "update_item",
    "update_settings",
    "use_one",
    "validate_state",
]
