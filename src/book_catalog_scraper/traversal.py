"""Category -> listing -> detail traversal of the book catalog.

:class:`CatalogTraversal` drives one browser page through the whole
catalog: it reads the category list once from the root page, then for each
category opens its listing and, for every book on it, clicks into the
detail page, extracts a record and goes back.

The collected records live in a :class:`CrawlResult` that is passed into
and returned from every step, so a failed step can never leave a
half-updated accumulator behind.  Failures are scoped:

* an item that cannot be reached or extracted is skipped;
* a category whose listing cannot be loaded is skipped;
* a root page that cannot be loaded (or lists no categories) raises
  :class:`~book_catalog_scraper.errors.RootLoadFailure`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Protocol
from urllib.parse import urljoin

from book_catalog_scraper.errors import (
    CatalogError,
    ElementNotFound,
    ExtractionError,
    NavigationTimeout,
    RootLoadFailure,
)
from book_catalog_scraper.extraction import extract_record
from book_catalog_scraper.items import BookItem
from book_catalog_scraper.page_access import PageAccess
from book_catalog_scraper.parsing_helpers import truncate

logger = logging.getLogger(__name__)

CATEGORY_LINK_SELECTOR = "ul.nav ul li a"
LISTING_LINK_SELECTOR = ".product_pod h3 a"


class TraversalState(Enum):
    AT_ROOT = "at_root"
    AT_LISTING = "at_listing"
    AT_DETAIL = "at_detail"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class Category:
    name: str
    target: str  # absolute listing URL


@dataclass(frozen=True, slots=True)
class ListingEntry:
    title: str
    target: str  # absolute detail URL


@dataclass(frozen=True, slots=True)
class SkippedEntry:
    """A book or category that was left out of the results."""

    scope: str  # "item" or "category"
    category: str
    position: int | None  # 1-based position on the listing; None for categories
    error: CatalogError


@dataclass(frozen=True, slots=True)
class CrawlResult:
    """Records collected so far, in visitation order, plus what was skipped."""

    records: tuple[BookItem, ...] = ()
    skipped: tuple[SkippedEntry, ...] = ()

    def add_record(self, record: BookItem) -> CrawlResult:
        return replace(self, records=self.records + (record,))

    def add_skip(self, entry: SkippedEntry) -> CrawlResult:
        return replace(self, skipped=self.skipped + (entry,))

    def skipped_in(self, scope: str) -> list[SkippedEntry]:
        return [s for s in self.skipped if s.scope == scope]


# ---------------------------------------------------------------------------
# Progress reporting
# ---------------------------------------------------------------------------

class ProgressObserver(Protocol):
    def record_added(self, index: int, title: str) -> None: ...

    def finished(self, total: int) -> None: ...


class LoggingProgressObserver:
    """Report progress through a logger (the spider's, when crawling)."""

    def __init__(self, log: logging.Logger | logging.LoggerAdapter | None = None, width: int = 40):
        self.log = log or logger
        self.width = width

    def record_added(self, index: int, title: str) -> None:
        self.log.info("Added book #%d: %s", index, truncate(title, self.width))

    def finished(self, total: int) -> None:
        self.log.info("Crawl finished: %d books", total)


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------

class CatalogTraversal:
    """Walk every category and book reachable from *root_url*."""

    def __init__(
        self,
        access: PageAccess,
        root_url: str,
        *,
        observer: ProgressObserver | None = None,
    ):
        self.access = access
        self.root_url = root_url
        self.observer = observer or LoggingProgressObserver()
        self.state = TraversalState.AT_ROOT
        self.current_category: str | None = None

    async def run(self) -> CrawlResult:
        """Load the root page and crawl every category on it."""
        await self.load_root()
        categories = await self.enumerate_categories()
        return await self.crawl(categories)

    async def load_root(self) -> None:
        try:
            await self.access.goto(self.root_url)
        except (NavigationTimeout, ElementNotFound) as exc:
            raise RootLoadFailure(self.root_url, exc) from exc
        self.state = TraversalState.AT_ROOT

    async def enumerate_categories(self) -> list[Category]:
        """Read the category links off the root page, without navigating."""
        try:
            links = await self.access.list_elements(CATEGORY_LINK_SELECTOR)
            categories = []
            for link in links:
                name = (await self.access.get_text(link)).strip()
                href = await self.access.get_attribute(link, "href")
                if not name or not href:
                    logger.warning("Ignoring category link without name or href (%r)", name)
                    continue
                categories.append(Category(name, urljoin(self.access.url, href)))
        except (NavigationTimeout, ElementNotFound) as exc:
            raise RootLoadFailure(self.root_url, exc) from exc

        if not categories:
            raise RootLoadFailure(self.root_url, ElementNotFound(CATEGORY_LINK_SELECTOR))
        logger.info("Found %d categories on %s", len(categories), self.root_url)
        return categories

    async def enumerate_listing(self, category: Category) -> list[ListingEntry]:
        """Read the book links on the listing currently shown."""
        entries = []
        for link in await self.access.list_elements(LISTING_LINK_SELECTOR):
            href = await self.access.get_attribute(link, "href")
            if not href:
                raise ElementNotFound(f"{LISTING_LINK_SELECTOR}[href]")
            title = await self.access.get_attribute(link, "title")
            if title is None:
                title = await self.access.get_text(link)
            entries.append(ListingEntry(title.strip(), urljoin(self.access.url, href)))
        return entries

    async def crawl(
        self,
        categories: list[Category],
        result: CrawlResult | None = None,
    ) -> CrawlResult:
        """Visit *categories* in order and return the accumulated result."""
        if result is None:
            result = CrawlResult()
        for category in categories:
            result = await self.visit_category(category, result)
        self.state = TraversalState.DONE
        self.current_category = None
        self.observer.finished(len(result.records))
        return result

    async def visit_category(self, category: Category, result: CrawlResult) -> CrawlResult:
        self.current_category = category.name
        try:
            await self.access.goto(category.target)
            self.state = TraversalState.AT_LISTING
            entries = await self.enumerate_listing(category)
        except (NavigationTimeout, ElementNotFound) as exc:
            logger.warning("Skipping category %r: %s", category.name, exc)
            return result.add_skip(SkippedEntry("category", category.name, None, exc))

        logger.info("Found %d books in %r", len(entries), category.name)
        for position in range(len(entries)):
            result = await self.visit_item(category, entries, position, result)
            try:
                await self._return_to_listing(category)
            except NavigationTimeout as exc:
                remaining = range(position + 1, len(entries))
                if remaining:
                    logger.warning(
                        "Lost the %r listing, skipping %d remaining books: %s",
                        category.name, len(remaining), exc,
                    )
                for rest in remaining:
                    result = result.add_skip(
                        SkippedEntry("item", category.name, rest + 1, exc)
                    )
                break
        return result

    async def visit_item(
        self,
        category: Category,
        entries: list[ListingEntry],
        position: int,
        result: CrawlResult,
    ) -> CrawlResult:
        """Open the book at *position*, extract it and add it to *result*.

        The page is left on whichever view it reached; the caller brings it
        back to the listing.
        """
        entry = entries[position]
        try:
            handle = await self._locate_item(category, entries, position)
            await self.access.click(handle)
            self.state = TraversalState.AT_DETAIL
            record = await extract_record(self.access, category.name)
        except (ExtractionError, NavigationTimeout, ElementNotFound) as exc:
            logger.warning(
                "Skipping book %d in %r (%s): %s",
                position + 1, category.name, entry.title, exc,
            )
            return result.add_skip(SkippedEntry("item", category.name, position + 1, exc))

        result = result.add_record(record)
        self.observer.record_added(len(result.records), record.title)
        return result

    # ------------------------------------------------------------------
    # Navigation-state recovery
    # ------------------------------------------------------------------

    async def _locate_item(
        self,
        category: Category,
        entries: list[ListingEntry],
        position: int,
    ):
        """Return the link handle for ``entries[position]`` on the live listing.

        Going back is not guaranteed to restore the listing, so the links
        are re-read and checked against the first enumeration.  On a
        mismatch the listing is reloaded once.
        """
        for attempt in range(2):
            handles = await self.access.list_elements(LISTING_LINK_SELECTOR)
            if len(handles) == len(entries):
                href = await self.access.get_attribute(handles[position], "href")
                if href and urljoin(self.access.url, href) == entries[position].target:
                    return handles[position]
            if attempt == 0:
                logger.info("Listing for %r not restored, reloading it", category.name)
                await self.access.goto(category.target)
                self.state = TraversalState.AT_LISTING
        raise ElementNotFound(f"{LISTING_LINK_SELECTOR} -> {entries[position].target}")

    async def _return_to_listing(self, category: Category) -> None:
        if self.state is not TraversalState.AT_DETAIL:
            return
        try:
            await self.access.go_back()
        except NavigationTimeout as exc:
            logger.warning("Going back to %r failed (%s), reloading it", category.name, exc)
            await self.access.goto(category.target)
        self.state = TraversalState.AT_LISTING
