"""Crawl a category-organised book catalog into an Excel workbook."""

__version__ = "0.1.0"
