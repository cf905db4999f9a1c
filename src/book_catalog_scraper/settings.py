"""Scrapy settings for the book catalog scraper."""

BOT_NAME = "book_catalog_scraper"

SPIDER_MODULES = ["book_catalog_scraper.spiders"]
NEWSPIDER_MODULE = "book_catalog_scraper.spiders"

# --- Playwright integration ---
DOWNLOAD_HANDLERS = {
    "http": "scrapy_playwright.handler.ScrapyPlaywrightDownloadHandler",
    "https": "scrapy_playwright.handler.ScrapyPlaywrightDownloadHandler",
}
TWISTED_REACTOR = "twisted.internet.asyncioreactor.AsyncioSelectorReactor"

PLAYWRIGHT_BROWSER_TYPE = "chromium"
PLAYWRIGHT_LAUNCH_OPTIONS = {
    "headless": True,
}


# Block unnecessary resource types to speed up page loads
def PLAYWRIGHT_ABORT_REQUEST(req):
    return req.resource_type in ("image", "font", "media")


PLAYWRIGHT_CONTEXTS = {
    "default": {
        "viewport": {"width": 1280, "height": 900},
    }
}

# --- Catalog traversal ---
CATALOG_START_URL = "https://books.toscrape.com/"
CATALOG_TIMEOUT_MS = 30_000  # per navigation / page query
CATALOG_STEALTH = True

# --- Sequential, one-shot crawling ---
# The whole catalog is walked on one page, so there is only ever one request.
ROBOTSTXT_OBEY = False
CONCURRENT_REQUESTS = 1
RETRY_ENABLED = False

# --- Timeouts ---
DOWNLOAD_TIMEOUT = 60  # Scrapy-level hard cap for the root request (seconds)
PLAYWRIGHT_DEFAULT_NAVIGATION_TIMEOUT = 30_000  # ms, root page.goto()

# --- Pipelines ---
ITEM_PIPELINES = {
    "book_catalog_scraper.pipelines.XlsxReportPipeline": 900,
}

# Default output path for the workbook (override via CLI --output)
XLSX_REPORT_PATH = "book.xlsx"

# --- Misc ---
REQUEST_FINGERPRINTER_IMPLEMENTATION = "2.7"
LOG_LEVEL = "INFO"
