"""Exceptions raised while crawling and extracting catalog pages.

Item-level and category-level errors are recoverable: the traversal logs
them, records a skip and moves on.  Only :class:`RootLoadFailure` aborts a
run.
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for all crawl errors."""


class MissingField(CatalogError):
    """An expected element is absent from the detail page."""

    def __init__(self, field: str):
        super().__init__(f"missing field {field!r}")
        self.field = field


class UnparseableValue(CatalogError):
    """A field's text is present but not in an encoding we understand."""

    def __init__(self, field: str, raw: str | None):
        super().__init__(f"cannot parse {field!r} from {raw!r}")
        self.field = field
        self.raw = raw


class NavigationTimeout(CatalogError):
    """A navigation or page query did not settle within the timeout or failed in the browser."""

    def __init__(self, action: str, detail: str = ""):
        message = f"{action} timed out"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.action = action
        self.detail = detail


class ElementNotFound(CatalogError):
    """A selector matched nothing on the current page."""

    def __init__(self, selector: str):
        super().__init__(f"no element matches {selector!r}")
        self.selector = selector


class ExtractionError(CatalogError):
    """Extraction of one book failed; ``field`` is the first field that failed."""

    def __init__(self, field: str, cause: CatalogError):
        super().__init__(f"could not extract {field!r}: {cause}")
        self.field = field
        self.cause = cause


class RootLoadFailure(CatalogError):
    """The catalog root could not be loaded or listed no categories."""

    def __init__(self, url: str, cause: Exception | None = None):
        message = f"failed to load catalog root {url}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.url = url
        self.cause = cause
