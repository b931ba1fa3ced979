"""CSV interchange format for bulk import and export."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from pydantic import ValidationError

from .logging import get_logger
from .schemas import Category, InventoryState, Item, Location, new_id
from .validators import (
    coerce_date,
    coerce_quantity,
    coerce_tags,
    coerce_text,
    coerce_value,
    is_true_flag,
)

logger = get_logger(__name__)

DELIMITER = ","
QUOTE = '"'
TAG_SEPARATOR = ";"
HEADER = (
    "id",
    "name",
    "category",
    "location",
    "quantity",
    "unit",
    "expirationDate",
    "condition",
    "value",
    "tags",
    "photoUrl",
    "barcode",
    "notes",
    "consumable",
    "isFood",
)
_MISC_CATEGORY_NAME = "Misc"


def escape_field(value: str) -> str:
    """Quote a field containing a delimiter, quote or line break."""

    if any(marker in value for marker in (DELIMITER, QUOTE, "\n", "\r")):
        return QUOTE + value.replace(QUOTE, QUOTE * 2) + QUOTE
    return value


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _flag(value: Optional[bool]) -> str:
    return "true" if value else ""


def encode_items(
    items: Iterable[Item],
    categories: Iterable[Category],
    locations: Iterable[Location],
) -> str:
    """Render items as CSV text: the fixed header line then one line per item."""

    category_names = {category.id: category.name for category in categories}
    location_names = {location.id: location.name for location in locations}
    lines = [DELIMITER.join(HEADER)]
    for item in items:
        row = [
            item.id,
            item.name,
            category_names.get(item.category_id, ""),
            location_names.get(item.location_id, "") if item.location_id else "",
            str(item.quantity),
            item.unit or "",
            item.expiration_date.isoformat() if item.expiration_date else "",
            item.condition or "",
            _format_number(item.value) if item.value is not None else "",
            TAG_SEPARATOR.join(item.tags),
            item.photo_url or "",
            item.barcode or "",
            item.notes or "",
            _flag(item.consumable),
            _flag(item.is_food),
        ]
        lines.append(DELIMITER.join(escape_field(value) for value in row))
    return "\n".join(lines)


def export_csv(state: InventoryState) -> str:
    return encode_items(state.items, state.categories, state.locations)


def parse_rows(text: str) -> List[List[str]]:
    """Split CSV text into rows of raw field strings."""

    rows: List[List[str]] = []
    row: List[str] = []
    current: List[str] = []
    in_quotes = False
    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        if in_quotes:
            if char == QUOTE:
                if index + 1 < length and text[index + 1] == QUOTE:
                    current.append(QUOTE)
                    index += 1
                else:
                    in_quotes = False
            else:
                current.append(char)
        elif char == QUOTE:
            in_quotes = True
        elif char == DELIMITER:
            row.append("".join(current))
            current = []
        elif char in "\r\n":
            if current or row:
                row.append("".join(current))
                rows.append(row)
                row = []
                current = []
        else:
            current.append(char)
        index += 1
    if current or row:
        row.append("".join(current))
        rows.append(row)
    return rows


@dataclass
class DecodedBatch:
    """Candidate items of one import pass plus the records it synthesized."""

    items: List[Item] = field(default_factory=list)
    new_categories: List[Category] = field(default_factory=list)
    new_locations: List[Location] = field(default_factory=list)
    ignored: int = 0
    empty: bool = False


class _ColumnMap:
    def __init__(self, header: Sequence[str]) -> None:
        self._index: Dict[str, int] = {}
        for position, label in enumerate(header):
            self._index.setdefault(label.strip(), position)

    def has(self, name: str) -> bool:
        return name in self._index

    def cell(self, row: Sequence[str], name: str) -> str:
        position = self._index.get(name)
        if position is None or position >= len(row):
            return ""
        return row[position]


class _Resolver:
    """Maps names to ids, registering unknown names as new records."""

    def __init__(self, categories: Sequence[Category], locations: Sequence[Location]) -> None:
        self._categories = {category.name: category.id for category in categories}
        self._locations = {location.name: location.id for location in locations}
        self._default_category = categories[0].id if categories else None
        self.new_categories: List[Category] = []
        self.new_locations: List[Location] = []

    def category_id(self, name: str) -> str:
        name = name.strip()
        if name:
            if name not in self._categories:
                category = Category(id=new_id(), name=name)
                self.new_categories.append(category)
                self._categories[name] = category.id
            return self._categories[name]
        if self._default_category is None:
            self._default_category = self.category_id(_MISC_CATEGORY_NAME)
        return self._default_category

    def location_id(self, name: str) -> Optional[str]:
        name = name.strip()
        if not name:
            return None
        if name not in self._locations:
            location = Location(id=new_id(), name=name)
            self.new_locations.append(location)
            self._locations[name] = location.id
        return self._locations[name]


def decode_items(
    text: str,
    categories: Sequence[Category],
    locations: Sequence[Location],
) -> DecodedBatch:
    """Decode CSV text into candidate items resolved against known names."""

    rows = parse_rows(text)
    if not rows:
        return DecodedBatch(empty=True)
    columns = _ColumnMap(rows[0])
    resolver = _Resolver(categories, locations)
    batch = DecodedBatch()
    for row_number, row in enumerate(rows[1:], start=2):
        if not any(value.strip() for value in row):
            continue
        item_id = columns.cell(row, "id")
        name = columns.cell(row, "name")
        if not item_id.strip() or not name.strip():
            batch.ignored += 1
            logger.debug("import_row_ignored", row=row_number, reason="missing id or name")
            continue
        try:
            item = Item(
                id=item_id,
                name=name,
                category_id=resolver.category_id(columns.cell(row, "category")),
                location_id=resolver.location_id(columns.cell(row, "location")),
                quantity=coerce_quantity(columns.cell(row, "quantity")),
                unit=coerce_text(columns.cell(row, "unit")),
                expiration_date=coerce_date(columns.cell(row, "expirationDate")),
                condition=coerce_text(columns.cell(row, "condition")),
                value=coerce_value(columns.cell(row, "value")),
                tags=coerce_tags(columns.cell(row, "tags")),
                photo_url=coerce_text(columns.cell(row, "photoUrl")),
                barcode=coerce_text(columns.cell(row, "barcode")),
                notes=coerce_text(columns.cell(row, "notes")),
                consumable=is_true_flag(columns.cell(row, "consumable")),
                is_food=(
                    is_true_flag(columns.cell(row, "isFood"))
                    if columns.has("isFood")
                    else None
                ),
            )
        except ValidationError as exc:
            batch.ignored += 1
            logger.warning("import_row_ignored", row=row_number, error=str(exc))
            continue
        batch.items.append(item)
    batch.new_categories = resolver.new_categories
    batch.new_locations = resolver.new_locations
    return batch


__all__ = [
    "HEADER",
    "DecodedBatch",
    "decode_items",
    "encode_items",
    "escape_field",
    "export_csv",
    "parse_rows",
]
