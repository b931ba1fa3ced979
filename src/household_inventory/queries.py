"""Read-only views over a snapshot: classification, filtering and sorting."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Union

from .schemas import Category, InventoryState, Item


class ItemView(str, Enum):
    ALL = "all"
    EXPIRING_SOON = "expiring_soon"
    LOW_STOCK = "low_stock"


class SortBy(str, Enum):
    NAME = "name"
    QUANTITY = "quantity"
    EXPIRATION = "expiration"


def category_index(categories: Iterable[Category]) -> Dict[str, Category]:
    return {category.id: category for category in categories}


def is_food(
    item: Item, categories: Union[Mapping[str, Category], Iterable[Category]]
) -> bool:
    """Explicit flag first, otherwise a category whose name mentions food.

    Pass a :func:`category_index` mapping when classifying many items.
    """

    if item.is_food is not None:
        return item.is_food
    if not isinstance(categories, Mapping):
        categories = category_index(categories)
    category = categories.get(item.category_id)
    return category is not None and "food" in category.name.lower()


def days_until_expiry(item: Item, today: Optional[date] = None) -> Optional[int]:
    if item.expiration_date is None:
        return None
    return (item.expiration_date - (today or date.today())).days


def is_expired(item: Item, today: Optional[date] = None) -> bool:
    remaining = days_until_expiry(item, today)
    return remaining is not None and remaining < 0


def is_expiring_soon(item: Item, days: int, today: Optional[date] = None) -> bool:
    remaining = days_until_expiry(item, today)
    return remaining is not None and 0 <= remaining <= days


def is_low_stock(item: Item, threshold: int) -> bool:
    return item.quantity <= threshold


def expiring_soon(state: InventoryState, today: Optional[date] = None) -> List[Item]:
    """Food items whose date falls within ``[today, today + expiring_soon_days]``."""

    window = state.settings.expiring_soon_days
    categories = category_index(state.categories)
    return [
        item
        for item in state.items
        if is_food(item, categories) and is_expiring_soon(item, window, today)
    ]


def low_stock(state: InventoryState) -> List[Item]:
    threshold = state.settings.low_stock_threshold
    return [item for item in state.items if is_low_stock(item, threshold)]


def find_by_barcode(
    items: Iterable[Item], barcode: str, exclude_id: Optional[str] = None
) -> Optional[Item]:
    if not barcode:
        return None
    for item in items:
        if item.barcode == barcode and item.id != exclude_id:
            return item
    return None


@dataclass(frozen=True)
class ItemQuery:
    view: ItemView = ItemView.ALL
    category_id: Optional[str] = None
    location_id: Optional[str] = None
    tag: Optional[str] = None
    search: Optional[str] = None
    sort_by: SortBy = SortBy.NAME


def _search_text(item: Item, state: InventoryState, categories: Mapping[str, Category]) -> str:
    category = categories.get(item.category_id)
    location = state.get_location(item.location_id)
    fields = [
        item.name,
        item.notes or "",
        item.barcode or "",
        " ".join(item.tags),
        category.name if category else "",
        location.name if location else "",
    ]
    return " ".join(fields).casefold()


def _matches(
    item: Item,
    state: InventoryState,
    query: ItemQuery,
    today: date,
    categories: Mapping[str, Category],
) -> bool:
    view = ItemView(query.view)
    if view is ItemView.EXPIRING_SOON:
        if not is_food(item, categories):
            return False
        if not is_expiring_soon(item, state.settings.expiring_soon_days, today):
            return False
    elif view is ItemView.LOW_STOCK:
        if not is_low_stock(item, state.settings.low_stock_threshold):
            return False
    if query.category_id and item.category_id != query.category_id:
        return False
    if query.location_id and item.location_id != query.location_id:
        return False
    tag = (query.tag or "").strip().casefold()
    if tag and tag not in {entry.casefold() for entry in item.tags}:
        return False
    term = (query.search or "").strip().casefold()
    if term and term not in _search_text(item, state, categories):
        return False
    return True


def sort_items(items: Iterable[Item], sort_by: SortBy = SortBy.NAME) -> List[Item]:
    sort_by = SortBy(sort_by)
    if sort_by is SortBy.QUANTITY:
        return sorted(items, key=lambda item: -item.quantity)
    if sort_by is SortBy.EXPIRATION:
        return sorted(
            items,
            key=lambda item: (item.expiration_date is None, item.expiration_date or date.min),
        )
    return sorted(items, key=lambda item: item.name.casefold())


def filter_items(
    state: InventoryState, query: Optional[ItemQuery] = None, today: Optional[date] = None
) -> List[Item]:
    """Apply the list filters of ``query`` and return the sorted matches."""

    query = query or ItemQuery()
    today = today or date.today()
    categories = category_index(state.categories)
    matches = [
        item for item in state.items if _matches(item, state, query, today, categories)
    ]
    return sort_items(matches, query.sort_by)


__all__ = [
    "ItemQuery",
    "ItemView",
    "SortBy",
    "category_index",
    "days_until_expiry",
    "expiring_soon",
    "filter_items",
    "find_by_barcode",
    "is_expired",
    "is_expiring_soon",
    "is_food",
    "is_low_stock",
    "low_stock",
    "sort_items",
]
