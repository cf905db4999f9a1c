"""Playwright stealth patches for the catalog browser page.

Applied through scrapy-playwright's ``playwright_page_init_callback`` so the
page is patched before its first navigation.  ``playwright-stealth`` hides
the usual automation tells (``navigator.webdriver``, missing plugins and
languages, headless WebGL strings).  Spiders skip it when the
``CATALOG_STEALTH`` setting is off by leaving the callback out of the
request meta.
"""

from __future__ import annotations

from playwright_stealth import Stealth

_stealth = Stealth()


async def apply_stealth(page, request):
    """scrapy-playwright page-init callback that applies stealth patches."""
    await _stealth.apply_stealth_async(page)


def page_init_meta(enabled: bool) -> dict:
    """Request meta entries that enable stealth when *enabled*."""
    return {"playwright_page_init_callback": apply_stealth} if enabled else {}
