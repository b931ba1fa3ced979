"""Interfaces of the barcode scanner and product lookup collaborators."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel

from .logging import get_logger
from .queries import find_by_barcode
from .schemas import InventoryState, Item

logger = get_logger(__name__)


class ProductSuggestion(BaseModel):
    name: str
    category_name: Optional[str] = None
    image_url: Optional[str] = None


class BarcodeScanner(ABC):
    """Camera or hand scanner yielding one decoded code per call."""

    @abstractmethod
    async def scan(self) -> Optional[str]:
        """Return one decoded barcode, or ``None`` when nothing was read."""


class ProductLookup(ABC):
    @abstractmethod
    async def lookup(self, barcode: str) -> Optional[ProductSuggestion]:
        """Return a suggestion for ``barcode`` if the catalog knows it."""


class NullProductLookup(ProductLookup):
    """Lookup used until a product database is wired in."""

    async def lookup(self, barcode: str) -> Optional[ProductSuggestion]:
        return None


@dataclass(frozen=True)
class BarcodeMatch:
    barcode: str
    existing: Optional[Item] = None
    suggestion: Optional[ProductSuggestion] = None
    category_id: Optional[str] = None


async def resolve_barcode(
    state: InventoryState,
    barcode: str,
    lookup: Optional[ProductLookup] = None,
    *,
    exclude_id: Optional[str] = None,
) -> BarcodeMatch:
    """Report an item already carrying ``barcode`` and any product suggestion."""

    code = barcode.strip()
    existing = find_by_barcode(state.items, code, exclude_id=exclude_id)
    suggestion = await (lookup or NullProductLookup()).lookup(code) if code else None
    category_id = None
    if suggestion is not None and suggestion.category_name:
        wanted = suggestion.category_name.casefold()
        for category in state.categories:
            if category.name.casefold() == wanted:
                category_id = category.id
                break
    logger.debug(
        "barcode_resolved",
        barcode=code,
        duplicate=existing is not None,
        suggested=suggestion is not None,
    )
    return BarcodeMatch(
        barcode=code, existing=existing, suggestion=suggestion, category_id=category_id
    )


async def scan_and_resolve(
    scanner: BarcodeScanner,
    state: InventoryState,
    lookup: Optional[ProductLookup] = None,
) -> Optional[BarcodeMatch]:
    code = await scanner.scan()
    if not code:
        return None
    return await resolve_barcode(state, code, lookup)


__all__ = [
    "BarcodeMatch",
    "BarcodeScanner",
    "NullProductLookup",
    "ProductLookup",
    "ProductSuggestion",
    "resolve_barcode",
    "scan_and_resolve",
]
