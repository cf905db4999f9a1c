"""Page-access capability used by the traversal and the record extractor.

The crawler never touches Playwright directly; it talks to a
:class:`PageAccess`.  :class:`PlaywrightPageAccess` backs it with a live
scrapy-playwright page, and the tests back it with an in-memory site.

Every operation is bounded by a timeout.  Any Playwright error (timeouts,
aborted navigations, a closed page or a destroyed execution context)
surfaces as :class:`NavigationTimeout`; selectors that match nothing
surface as :class:`ElementNotFound`.
"""

from __future__ import annotations

from typing import Any, Protocol, Union

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page

from book_catalog_scraper.errors import ElementNotFound, NavigationTimeout

# A handle returned by ``list_elements``, or a CSS selector string.
Target = Union[Any, str]


class PageAccess(Protocol):
    """What the crawler needs from a browser page."""

    @property
    def url(self) -> str: ...

    async def list_elements(self, selector: str) -> list[Any]: ...

    async def get_text(self, target: Target) -> str: ...

    async def get_attribute(self, target: Target, name: str) -> str | None: ...

    async def is_visible(self, selector: str) -> bool: ...

    async def click(self, handle: Any) -> None: ...

    async def go_back(self) -> None: ...

    async def goto(self, url: str) -> None: ...


class PlaywrightPageAccess:
    """:class:`PageAccess` backed by a ``playwright.async_api.Page``.

    Handles are :class:`~playwright.async_api.Locator` objects.  When a
    selector string is passed as a target, its first match is used.
    """

    def __init__(
        self,
        page: Page,
        *,
        timeout_ms: int = 30_000,
        wait_until: str = "domcontentloaded",
    ):
        self.page = page
        self.timeout_ms = timeout_ms
        self.wait_until = wait_until

    @property
    def url(self) -> str:
        return self.page.url

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_elements(self, selector: str) -> list[Locator]:
        try:
            return await self.page.locator(selector).all()
        except PlaywrightError as exc:
            raise NavigationTimeout("list_elements", f"{selector}: {exc}") from exc

    async def get_text(self, target: Target) -> str:
        locator = await self._resolve(target)
        try:
            return await locator.inner_text(timeout=self.timeout_ms)
        except PlaywrightError as exc:
            raise NavigationTimeout("get_text", str(exc)) from exc

    async def get_attribute(self, target: Target, name: str) -> str | None:
        locator = await self._resolve(target)
        try:
            return await locator.get_attribute(name, timeout=self.timeout_ms)
        except PlaywrightError as exc:
            raise NavigationTimeout("get_attribute", str(exc)) from exc

    async def is_visible(self, selector: str) -> bool:
        try:
            return await self.page.locator(selector).first.is_visible()
        except PlaywrightError as exc:
            raise NavigationTimeout("is_visible", f"{selector}: {exc}") from exc

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def click(self, handle: Locator) -> None:
        try:
            async with self.page.expect_navigation(
                wait_until=self.wait_until, timeout=self.timeout_ms,
            ):
                await handle.click(timeout=self.timeout_ms)
        except PlaywrightError as exc:
            raise NavigationTimeout("click", str(exc)) from exc

    async def go_back(self) -> None:
        # A None response (bfcache restore, no history) is not an error here;
        # the traversal checks the restored listing itself.
        try:
            await self.page.go_back(
                wait_until=self.wait_until, timeout=self.timeout_ms,
            )
        except PlaywrightError as exc:
            raise NavigationTimeout("go_back", str(exc)) from exc

    async def goto(self, url: str) -> None:
        try:
            await self.page.goto(
                url, wait_until=self.wait_until, timeout=self.timeout_ms,
            )
        except PlaywrightError as exc:
            raise NavigationTimeout("goto", f"{url}: {exc}") from exc

    # ------------------------------------------------------------------

    async def _resolve(self, target: Target) -> Locator:
        if isinstance(target, str):
            locator = self.page.locator(target)
            try:
                matches = await locator.count()
            except PlaywrightError as exc:
                raise NavigationTimeout("count", f"{target}: {exc}") from exc
            if matches == 0:
                raise ElementNotFound(target)
            return locator.first
        return target
