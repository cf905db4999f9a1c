"""Write scraped books to an Excel workbook, and read them back.

The workbook has a single ``Book`` sheet: one header row, then one row per
book with columns in :data:`~book_catalog_scraper.items.BOOK_FIELDS` order.

Usage from Python::

    from book_catalog_scraper.export import read_records, write_records
    write_records(books, "book.xlsx")
    assert read_records("book.xlsx") == books
"""

from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Iterable

import pandas as pd
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from book_catalog_scraper.items import BOOK_FIELDS, BookItem, StockState

DEFAULT_REPORT_PATH = "book.xlsx"
SHEET_NAME = "Book"

# Columns that must come back as strings, never as numbers or NaN.
_TEXT_COLUMNS = ("title", "category", "price", "stock", "upc", "description")


def records_to_frame(records: Iterable[BookItem]) -> pd.DataFrame:
    """Tabulate *records*, one row each, stock written as its enum value.

    Characters a worksheet cannot hold (C0 controls other than tab, newline
    and carriage return) are dropped from the text columns.
    """
    rows = []
    for record in records:
        row = asdict(record)
        row["stock"] = record.stock.value
        for column in _TEXT_COLUMNS:
            row[column] = ILLEGAL_CHARACTERS_RE.sub("", row[column])
        rows.append(row)
    return pd.DataFrame(rows, columns=list(BOOK_FIELDS))


def write_records(records: Iterable[BookItem], path: str | Path = DEFAULT_REPORT_PATH) -> Path:
    """Write *records* to an ``.xlsx`` workbook at *path* and return the path.

    Every text cell is stored as a string, so a title such as ``=SUM(1,2)``
    is not turned into a formula.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        records_to_frame(records).to_excel(writer, sheet_name=SHEET_NAME, index=False)
        sheet = writer.sheets[SHEET_NAME]
        for row in sheet.iter_rows(min_row=2):
            for cell in row:
                if isinstance(cell.value, str):
                    cell.data_type = "s"
    return path


def read_records(path: str | Path) -> list[BookItem]:
    """Load the books from a workbook written by :func:`write_records`."""
    frame = pd.read_excel(
        path,
        sheet_name=SHEET_NAME,
        dtype={column: str for column in _TEXT_COLUMNS},
        keep_default_na=False,
        engine="openpyxl",
    )
    missing = [c for c in BOOK_FIELDS if c not in frame.columns]
    if missing:
        raise ValueError(f"{path}: missing columns {', '.join(missing)}")

    return [
        BookItem(
            title=row["title"],
            category=row["category"],
            price=row["price"],
            stock=StockState(row["stock"]),
            available=int(row["available"]),
            rating=int(row["rating"]),
            upc=row["upc"],
            description=row["description"],
        )
        for row in frame.to_dict("records")
    ]
