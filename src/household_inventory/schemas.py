"""Pydantic models describing the inventory snapshot."""
from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_CATEGORY_NAMES = (
    "Clothes",
    "Kitchen",
    "Outdoors",
    "Food",
    "Misc",
    "Cleaning",
    "Tools",
    "Electronics",
    "Bathroom",
)
DEFAULT_LOCATION_NAMES = (
    "Pantry – top shelf",
    "Garage – cabinet",
    "Bedroom closet",
)
ITEM_CONDITIONS = ("new", "good", "worn", "broken")


def new_id() -> str:
    """Return a fresh opaque identifier."""

    return str(uuid.uuid4())


class Record(BaseModel):
    """Immutable model persisted with camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )


class Category(Record):
    id: str
    name: str = Field(..., min_length=1)
    icon: str | None = None


class Location(Record):
    id: str
    name: str = Field(..., min_length=1)


class ItemBase(Record):
    name: str = Field(..., min_length=1)
    category_id: str = Field(..., description="Identifier of an existing category.")
    location_id: str | None = Field(None, description="Identifier of a location or none.")
    quantity: int = Field(0, ge=0)
    unit: str | None = None
    expiration_date: date | None = None
    condition: str | None = Field(None, description="new, good, worn, broken or free text.")
    value: float | None = Field(None, ge=0)
    tags: tuple[str, ...] = ()
    photo_url: str | None = None
    barcode: str | None = None
    notes: str | None = None
    consumable: bool = False
    is_food: bool | None = Field(
        None, description="Explicit food flag; derived from the category name when unset."
    )

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Item name cannot be blank")
        return value

    @field_validator("expiration_date", mode="before")
    @classmethod
    def _blank_date_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ItemDraft(ItemBase):
    """Item fields supplied by callers before an identity is assigned."""


class Item(ItemBase):
    id: str

    @classmethod
    def from_draft(cls, draft: ItemDraft, item_id: str | None = None) -> "Item":
        return cls(id=item_id or new_id(), **draft.model_dump())


class InventorySettings(Record):
    low_stock_threshold: int = Field(1, gt=0, strict=True)
    expiring_soon_days: int = Field(7, gt=0, strict=True)


class InventoryState(Record):
    """Aggregate root holding every collection and exactly one settings record."""

    items: tuple[Item, ...] = ()
    categories: tuple[Category, ...] = ()
    locations: tuple[Location, ...] = ()
    settings: InventorySettings = Field(default_factory=InventorySettings)

    def get_item(self, item_id: str) -> Item | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def get_category(self, category_id: str | None) -> Category | None:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def get_location(self, location_id: str | None) -> Location | None:
        if location_id is None:
            return None
        for location in self.locations:
            if location.id == location_id:
                return location
        return None

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted camelCase layout."""

        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "InventoryState":
        return cls.model_validate(record)


def default_state() -> InventoryState:
    """Return the seed state used at first run and after a reset."""

    return InventoryState(
        categories=tuple(Category(id=new_id(), name=name) for name in DEFAULT_CATEGORY_NAMES),
        locations=tuple(Location(id=new_id(), name=name) for name in DEFAULT_LOCATION_NAMES),
        settings=InventorySettings(),
    )


__all__ = [
    "DEFAULT_CATEGORY_NAMES",
    "DEFAULT_LOCATION_NAMES",
    "ITEM_CONDITIONS",
    "Category",
    "InventorySettings",
    "InventoryState",
    "Item",
    "ItemBase",
    "ItemDraft",
    "Location",
    "Record",
    "default_state",
    "new_id",
]
