"""Field parsers for book detail pages.

These convert the raw text and attribute values read off a detail page into
typed :class:`~book_catalog_scraper.items.BookItem` fields.  They are pure
functions; anything that cannot be parsed raises one of the errors in
:mod:`book_catalog_scraper.errors` instead of falling back to a default.
"""

from __future__ import annotations

import re

from book_catalog_scraper.errors import MissingField, UnparseableValue
from book_catalog_scraper.items import StockState


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
_WHITESPACE_RUN_RE = re.compile(r"\s+")


def clean_text(
    value: str | None,
    field: str,
    *,
    allow_empty: bool = False,
    single_line: bool = False,
) -> str:
    """Strip surrounding whitespace and control characters from *value*.

    With *single_line*, internal runs of whitespace (line breaks included)
    collapse to one space.  Tabs and line breaks are kept otherwise.

    Raises :class:`MissingField` for ``None`` (element absent), and for blank
    text unless *allow_empty* is set.
    """
    if value is None:
        raise MissingField(field)
    text = _CONTROL_CHARS_RE.sub("", value)
    if single_line:
        text = _WHITESPACE_RUN_RE.sub(" ", text)
    text = text.strip()
    if not text and not allow_empty:
        raise MissingField(field)
    return text


def truncate(text: str, width: int = 40) -> str:
    """Shorten *text* to *width* characters for progress output."""
    if len(text) <= width:
        return text
    return text[: max(width - 3, 0)].rstrip() + "..."


# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------

_PARENTHETICAL_RE = re.compile(r"\(.*?\)")
_DIGITS_RE = re.compile(r"\d+")

# The site only ever prints "In stock" or "Out of stock"; match exactly.
_IN_STOCK_LITERAL = "In stock"


def classify_stock(text: str | None) -> StockState:
    """Classify an availability line such as ``In stock (19 available)``.

    ``None`` means the availability element was missing entirely.
    """
    if text is None:
        return StockState.UNKNOWN
    label = _PARENTHETICAL_RE.sub("", text).strip()
    if label == _IN_STOCK_LITERAL:
        return StockState.IN_STOCK
    return StockState.OUT_OF_STOCK


def parse_available(text: str | None) -> int:
    """Return the first run of digits in *text*, or ``0`` if there is none."""
    if not text:
        return 0
    m = _DIGITS_RE.search(text)
    return int(m.group(0)) if m else 0


# ---------------------------------------------------------------------------
# Star rating
# ---------------------------------------------------------------------------

RATING_MARKER = "star-rating"

_RATING_WORDS: dict[str, int] = {
    "zero": 0,
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
}


def decode_rating(class_attr: str | None) -> int:
    """Decode a class list like ``star-rating Three`` into ``3``.

    A bare ``star-rating`` (no word) counts as zero stars.  An unknown word
    or more than one leftover token raises :class:`UnparseableValue`.
    """
    words = [t for t in (class_attr or "").split() if t != RATING_MARKER]
    if not words:
        return 0
    if len(words) > 1:
        raise UnparseableValue("rating", class_attr)
    try:
        return _RATING_WORDS[words[0].lower()]
    except KeyError:
        raise UnparseableValue("rating", class_attr) from None


def encode_rating(stars: int) -> str:
    """Inverse of :func:`decode_rating`: ``3`` -> ``star-rating Three``."""
    for word, value in _RATING_WORDS.items():
        if value == stars:
            return f"{RATING_MARKER} {word.capitalize()}"
    raise ValueError(f"rating must be between 0 and 5, got {stars!r}")
