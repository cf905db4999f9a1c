"""Item pipelines for the book catalog scraper."""

from __future__ import annotations

import logging

from book_catalog_scraper.export import DEFAULT_REPORT_PATH, write_records
from book_catalog_scraper.items import BookItem


class XlsxReportPipeline:
    """Collect items and write them to an Excel workbook on spider close.

    The workbook is only written when the spider finished its traversal
    (``spider.crawl_result`` is set).  A run aborted at the catalog root
    leaves any previous report untouched.
    """

    def __init__(self, output_path: str = DEFAULT_REPORT_PATH, crawler=None):
        self.output_path = output_path
        self.crawler = crawler
        self.items: list[BookItem] = []
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_crawler(cls, crawler):
        output = crawler.settings.get("XLSX_REPORT_PATH", DEFAULT_REPORT_PATH)
        return cls(output_path=output, crawler=crawler)

    def open_spider(self, spider=None):
        self.items = []

    def process_item(self, item: BookItem, spider=None) -> BookItem:
        self.items.append(item)
        return item

    def close_spider(self, spider=None):
        if spider is None and self.crawler is not None:
            spider = self.crawler.spider
        if getattr(spider, "crawl_result", None) is None:
            self.logger.warning(
                "Crawl did not complete, not writing %s.", self.output_path,
            )
            return

        path = write_records(self.items, self.output_path)
        self.logger.info(
            "Excel report written to %s (%d books)", path, len(self.items),
        )
