"""Spider for the Books to Scrape catalog (https://books.toscrape.com/).

The catalog root lists every category in its side navigation; each
category listing shows a grid of ``.product_pod`` cards linking to detail
pages.  Unlike a request-per-page spider, this one loads the root once
through scrapy-playwright and keeps the live page: the whole crawl is a
single click-in / go-back walk driven by
:class:`~book_catalog_scraper.traversal.CatalogTraversal`.

Example usage::

    book-catalog-scraper crawl --url "https://books.toscrape.com/"
"""

from __future__ import annotations

import scrapy
from scrapy.http import Response

from book_catalog_scraper.errors import RootLoadFailure
from book_catalog_scraper.page_access import PlaywrightPageAccess
from book_catalog_scraper.spiders import log_request_failure
from book_catalog_scraper.stealth import page_init_meta
from book_catalog_scraper.traversal import (
    CatalogTraversal,
    CrawlResult,
    LoggingProgressObserver,
)

DEFAULT_START_URL = "https://books.toscrape.com/"


class BooksSpider(scrapy.Spider):
    """Scrape every book of every category on a Books to Scrape catalog."""

    name = "books"

    # Passed via ``-a url=…`` or the CLI wrapper; falls back to the
    # CATALOG_START_URL setting.
    def __init__(self, url: str | None = None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.start_url = url
        # Set once the traversal finishes; stays None if the root failed.
        self.crawl_result: CrawlResult | None = None

    async def start(self):
        if self.start_url is None:
            self.start_url = self.settings.get("CATALOG_START_URL", DEFAULT_START_URL)
        yield scrapy.Request(
            self.start_url,
            meta={
                "playwright": True,
                "playwright_include_page": True,
                **page_init_meta(self.settings.getbool("CATALOG_STEALTH", True)),
            },
            callback=self.parse_catalog,
            errback=self.errback_root,
            dont_filter=True,
        )

    # ------------------------------------------------------------------
    # Catalog root: walk every category and book on the live page
    # ------------------------------------------------------------------

    async def parse_catalog(self, response: Response):
        page = response.meta["playwright_page"]
        access = PlaywrightPageAccess(
            page, timeout_ms=self.settings.getint("CATALOG_TIMEOUT_MS", 30_000),
        )
        traversal = CatalogTraversal(
            access, response.url, observer=LoggingProgressObserver(self.logger),
        )
        try:
            categories = await traversal.enumerate_categories()
            result = await traversal.crawl(categories)
        except RootLoadFailure as exc:
            self._abort(exc)
            return
        finally:
            await page.close()

        self.crawl_result = result
        items_skipped = len(result.skipped_in("item"))
        categories_skipped = len(result.skipped_in("category"))
        stats = self.crawler.stats
        stats.set_value("catalog/records", len(result.records))
        stats.set_value("catalog/items_skipped", items_skipped)
        stats.set_value("catalog/categories_skipped", categories_skipped)
        self.logger.info(
            "Scraped %d books from %d categories (%d books, %d categories skipped)",
            len(result.records), len(categories), items_skipped, categories_skipped,
        )

        for record in result.records:
            yield record

    # ------------------------------------------------------------------
    # Error handler
    # ------------------------------------------------------------------

    async def errback_root(self, failure):
        page = failure.request.meta.get("playwright_page")
        if page:
            await page.close()
        log_request_failure(failure, self.logger)
        self._abort(RootLoadFailure(failure.request.url, failure.value))

    def _abort(self, exc: RootLoadFailure) -> None:
        self.logger.error("Aborting crawl: %s", exc)
        self.crawler.stats.set_value("catalog/root_load_failure", str(exc))
