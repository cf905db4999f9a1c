"""Scrapy items for book catalog data."""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum


class StockState(Enum):
    """Availability of a book as shown on its detail page."""

    IN_STOCK = "InStock"
    OUT_OF_STOCK = "OutOfStock"
    UNKNOWN = "Unknown"  # availability line missing from the page


@dataclass(frozen=True, slots=True)
class BookItem:
    """A single book scraped from its detail page.

    Field order is also the column order of the exported workbook.
    """

    title: str
    category: str       # listing the book was reached from, not the breadcrumb
    price: str          # display string, e.g. "£51.77"
    stock: StockState
    available: int      # 0 unless stock is IN_STOCK
    rating: int         # 0..5
    upc: str
    description: str


BOOK_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(BookItem))
