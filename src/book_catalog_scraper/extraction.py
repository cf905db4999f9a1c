"""Record extraction from a book detail page.

:func:`extract_record` reads every field of the page the
:class:`~book_catalog_scraper.page_access.PageAccess` is currently showing
and assembles a :class:`~book_catalog_scraper.items.BookItem`.  The queries
are read-only, so they are issued together; assembly is all-or-nothing.
"""

from __future__ import annotations

import asyncio

from book_catalog_scraper.errors import (
    CatalogError,
    ElementNotFound,
    ExtractionError,
    MissingField,
    NavigationTimeout,
)
from book_catalog_scraper.items import BOOK_FIELDS, BookItem, StockState
from book_catalog_scraper.page_access import PageAccess
from book_catalog_scraper.parsing_helpers import (
    classify_stock,
    clean_text,
    decode_rating,
    parse_available,
)

TITLE_SELECTOR = ".product_main h1"
PRICE_SELECTOR = ".product_main .price_color"
AVAILABILITY_SELECTOR = ".product_main .availability"
RATING_SELECTOR = ".product_main .star-rating"
UPC_SELECTOR = 'table.table-striped tr:has(th:text-is("UPC")) td'
DESCRIPTION_SELECTOR = "#product_description + p"


async def _availability_text(access: PageAccess) -> str | None:
    """Availability line, or ``None`` when the page does not show one."""
    if not await access.is_visible(AVAILABILITY_SELECTOR):
        return None
    return await access.get_text(AVAILABILITY_SELECTOR)


async def _rating_class(access: PageAccess) -> str:
    return await access.get_attribute(RATING_SELECTOR, "class") or ""


async def extract_record(access: PageAccess, category: str) -> BookItem:
    """Extract one book from the detail page currently loaded in *access*.

    *category* is the listing the book was reached from.  Raises
    :class:`ExtractionError` naming the first field (in column order) that
    could not be read or parsed.
    """
    queries = {
        "title": access.get_text(TITLE_SELECTOR),
        "price": access.get_text(PRICE_SELECTOR),
        "stock": _availability_text(access),
        "rating": _rating_class(access),
        "upc": access.get_text(UPC_SELECTOR),
        "description": access.get_text(DESCRIPTION_SELECTOR),
    }
    results = await asyncio.gather(*queries.values(), return_exceptions=True)
    raw = dict(zip(queries, results))

    values: dict[str, object] = {"category": category}
    for field in BOOK_FIELDS:
        if field in ("category", "available"):
            continue
        try:
            values[field] = _parse_field(field, raw[field])
        except CatalogError as exc:
            raise ExtractionError(field, exc) from exc

    availability = raw["stock"]
    values["available"] = (
        parse_available(availability)
        if values["stock"] is StockState.IN_STOCK
        else 0
    )
    return BookItem(**values)


def _parse_field(field: str, raw: object):
    """Turn one gathered query result into a typed field value."""
    if isinstance(raw, ElementNotFound):
        raise MissingField(field) from raw
    if isinstance(raw, CatalogError):
        raise raw
    if isinstance(raw, Exception):
        raise NavigationTimeout(f"query {field}", repr(raw)) from raw
    if isinstance(raw, BaseException):
        raise raw
    if field == "stock":
        return classify_stock(raw)
    if field == "rating":
        return decode_rating(raw)
    if field == "description":
        return clean_text(raw, field, allow_empty=True)
    return clean_text(raw, field, single_line=True)
