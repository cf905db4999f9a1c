"""CLI entry-point for book-catalog-scraper.

Designed for use with ``uvx``::

    uvx book-catalog-scraper crawl --url "https://books.toscrape.com/"

Or take the crawl options from a config file::

    uvx book-catalog-scraper crawl --config catalog.toml

and summarise a workbook written by an earlier crawl::

    uvx book-catalog-scraper report book.xlsx
"""

from __future__ import annotations

import os
import sys
import tomllib
from collections import Counter
from pathlib import Path

import click
from scrapy.crawler import CrawlerProcess
from scrapy.utils.project import get_project_settings

from book_catalog_scraper.export import read_records
from book_catalog_scraper.spiders.books import BooksSpider

# Keys allowed in the ``[settings]`` table of a config file, with their types.
_CONFIG_KEYS: dict[str, type] = {
    "url": str,
    "output": str,
    "timeout": int,
    "headless": bool,
}


@click.group()
def main():
    """Crawl a book catalog into an Excel workbook."""


def _project_settings():
    os.environ.setdefault("SCRAPY_SETTINGS_MODULE", "book_catalog_scraper.settings")
    return get_project_settings()


def _load_config(config_path: str) -> dict:
    """Load and validate the ``[settings]`` table of a TOML config file."""
    path = Path(config_path)
    if not path.exists():
        click.echo(f"Error: config file not found: {path}", err=True)
        sys.exit(1)

    try:
        with open(path, "rb") as f:
            config = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        click.echo(f"Error: cannot parse {path}: {exc}", err=True)
        sys.exit(1)

    settings = config.get("settings", {})
    if not isinstance(settings, dict):
        click.echo("Error: [settings] must be a table.", err=True)
        sys.exit(1)

    for key, value in settings.items():
        expected = _CONFIG_KEYS.get(key)
        if expected is None:
            click.echo(f"Error: unknown setting '{key}' in {path}", err=True)
            sys.exit(1)
        # bool is a subclass of int; don't accept `timeout = true`.
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            click.echo(
                f"Error: setting '{key}' must be of type {expected.__name__}",
                err=True,
            )
            sys.exit(1)

    if "timeout" in settings and settings["timeout"] <= 0:
        click.echo("Error: setting 'timeout' must be positive", err=True)
        sys.exit(1)

    return settings


@main.command()
@click.option(
    "--url", "-u",
    default=None,
    help="Catalog root URL (default: https://books.toscrape.com/).",
)
@click.option(
    "--config", "-c",
    "config_path",
    default=None,
    type=click.Path(exists=True),
    help="Path to a TOML config file with a [settings] table.",
)
@click.option(
    "--output", "-o",
    default=None,
    help="Output workbook path (default: book.xlsx).",
)
@click.option(
    "--timeout",
    type=click.IntRange(min=1),
    default=None,
    help="Timeout per navigation / page query in ms (default: 30000).",
)
@click.option(
    "--headless/--no-headless",
    default=None,
    help="Run browser in headless mode (default: headless).",
)
def crawl(
    url: str | None,
    config_path: str | None,
    output: str | None,
    timeout: int | None,
    headless: bool | None,
):
    """Crawl every category and book of the catalog.

    Options given on the command line take precedence over the config file.
    Exits with status 1 if the catalog root could not be loaded, or if the
    crawl stopped before finishing its traversal.
    """
    file_settings = _load_config(config_path) if config_path else {}
    url = url or file_settings.get("url")
    output = output or file_settings.get("output")
    timeout = timeout or file_settings.get("timeout")
    if headless is None:
        headless = file_settings.get("headless", True)

    settings = _project_settings()
    if output:
        settings.set("XLSX_REPORT_PATH", output)
    if timeout:
        settings.set("CATALOG_TIMEOUT_MS", timeout)
        settings.set("PLAYWRIGHT_DEFAULT_NAVIGATION_TIMEOUT", timeout)
    settings.set("PLAYWRIGHT_LAUNCH_OPTIONS", {"headless": headless})

    process = CrawlerProcess(settings)
    crawler = process.create_crawler(BooksSpider)
    process.crawl(crawler, url=url)
    process.start()

    failure = crawler.stats.get_value("catalog/root_load_failure")
    if failure:
        click.echo(f"Error: {failure}", err=True)
        sys.exit(1)

    records = crawler.stats.get_value("catalog/records")
    if records is None:
        click.echo("Error: crawl did not finish, no report written.", err=True)
        sys.exit(1)

    click.echo(f"There are {records} books in {settings.get('XLSX_REPORT_PATH')}")


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def report(path: str):
    """Summarise a workbook written by ``crawl``."""
    try:
        books = read_records(path)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"{len(books)} books in {path}")
    if not books:
        return

    click.echo("By category:")
    for name, count in Counter(b.category for b in books).most_common():
        click.echo(f"  {name:30s} {count:5d}")

    click.echo("By stock:")
    for state, count in Counter(b.stock.value for b in books).most_common():
        click.echo(f"  {state:30s} {count:5d}")

    mean_rating = sum(b.rating for b in books) / len(books)
    click.echo(f"Mean rating: {mean_rating:.2f}")
    click.echo(f"Units available: {sum(b.available for b in books)}")


if __name__ == "__main__":
    main()
