import asyncio

import pytest
from fakes import ROOT, FakePageAccess, RecordingObserver, book_page, make_site
from playwright.async_api import Error as PlaywrightError

from book_catalog_scraper.errors import (
    ElementNotFound,
    ExtractionError,
    MissingField,
    NavigationTimeout,
    RootLoadFailure,
)
from book_catalog_scraper.items import StockState
from book_catalog_scraper.traversal import (
    CatalogTraversal,
    Category,
    CrawlResult,
    TraversalState,
)


def _listing_url(access, name):
    for link in access.pages[ROOT]["ul.nav ul li a"]:
        if link.text.strip() == name:
            return ROOT + link.attrs["href"]
    raise KeyError(name)


def _run(access, observer=None):
    traversal = CatalogTraversal(access, ROOT, observer=observer or RecordingObserver())
    return traversal, asyncio.run(traversal.run())


def _titles(result):
    return [r.title for r in result.records]


@pytest.fixture
def site():
    return make_site({
        "Travel": [book_page("Himalayas"), book_page("Full Moon")],
        "Mystery": [book_page("Sharp Objects"), book_page("In a Dark Place"), book_page("Tipping")],
        "Poetry": [book_page("Shakespeare's Sonnets")],
    })


def test_records_follow_visitation_order(site):
    access = FakePageAccess(site)
    traversal, result = _run(access)

    assert _titles(result) == [
        "Himalayas", "Full Moon",
        "Sharp Objects", "In a Dark Place", "Tipping",
        "Shakespeare's Sonnets",
    ]
    assert [r.category for r in result.records] == ["Travel"] * 2 + ["Mystery"] * 3 + ["Poetry"]
    assert result.skipped == ()
    assert traversal.state is TraversalState.DONE
    # One detail visit per record.
    assert len(access.clicked) == len(result.records)


def test_travel_scenario():
    access = FakePageAccess(make_site({
        "Travel": [book_page(
            "It's Only the Himalayas",
            availability="In stock (19 available)",
            rating="star-rating Three",
        )],
    }))
    _, result = _run(access)

    (record,) = result.records
    assert record.category == "Travel"
    assert record.stock is StockState.IN_STOCK
    assert record.available == 19
    assert record.rating == 3


def test_category_is_taken_from_the_listing():
    page = book_page("Borrowed")
    page[".breadcrumb li a"] = []  # detail pages never decide the category
    access = FakePageAccess(make_site({"Classics": [page]}))
    _, result = _run(access)
    assert result.records[0].category == "Classics"


def test_empty_categories_leave_result_unchanged():
    access = FakePageAccess(make_site({"Empty": [], "Also Empty": []}))
    traversal = CatalogTraversal(access, ROOT, observer=RecordingObserver())
    start = CrawlResult()

    asyncio.run(traversal.load_root())
    categories = asyncio.run(traversal.enumerate_categories())
    result = asyncio.run(traversal.crawl(categories, start))

    assert result == start
    assert traversal.state is TraversalState.DONE


def test_categories_enumerated_once_with_absolute_targets(site):
    access = FakePageAccess(site)
    traversal = CatalogTraversal(access, ROOT, observer=RecordingObserver())
    asyncio.run(traversal.load_root())

    categories = asyncio.run(traversal.enumerate_categories())

    assert [c.name for c in categories] == ["Travel", "Mystery", "Poetry"]
    assert categories[0] == Category(
        "Travel", ROOT + "catalogue/category/books/travel_2/index.html"
    )
    # Enumeration reads links without navigating.
    assert access.url == ROOT


def test_missing_description_skips_only_that_book():
    access = FakePageAccess(make_site({
        "Travel": [book_page("First"), book_page("No Blurb", description=None), book_page("Third")],
    }))
    _, result = _run(access)

    assert _titles(result) == ["First", "Third"]
    (skipped,) = result.skipped
    assert skipped.scope == "item"
    assert skipped.category == "Travel"
    assert skipped.position == 2
    assert isinstance(skipped.error, ExtractionError)
    assert skipped.error.field == "description"
    assert isinstance(skipped.error.cause, MissingField)


def test_root_load_failure_aborts():
    access = FakePageAccess(make_site({"Travel": [book_page("Himalayas")]}))
    access.goto_budget[ROOT] = 0
    observer = RecordingObserver()

    with pytest.raises(RootLoadFailure) as excinfo:
        _run(access, observer)

    assert isinstance(excinfo.value.cause, NavigationTimeout)
    assert access.clicked == []
    assert observer.added == [] and observer.totals == []


def test_root_without_categories_aborts():
    access = FakePageAccess({ROOT: {}})
    with pytest.raises(RootLoadFailure) as excinfo:
        _run(access)
    assert isinstance(excinfo.value.cause, ElementNotFound)


def test_unreachable_category_is_skipped(site):
    access = FakePageAccess(site)
    access.goto_budget[_listing_url(access, "Mystery")] = 0
    _, result = _run(access)

    assert _titles(result) == ["Himalayas", "Full Moon", "Shakespeare's Sonnets"]
    (skipped,) = result.skipped
    assert (skipped.scope, skipped.category, skipped.position) == ("category", "Mystery", None)
    assert isinstance(skipped.error, NavigationTimeout)


def test_broken_detail_link_is_skipped(site):
    access = FakePageAccess(site)
    listing = _listing_url(access, "Travel")
    access.pages[listing][".product_pod h3 a"][0].attrs["href"] = "../../../nowhere/index.html"
    _, result = _run(access)

    assert _titles(result)[:1] == ["Full Moon"]
    assert result.skipped_in("item")[0].position == 1
    assert isinstance(result.skipped_in("item")[0].error, NavigationTimeout)


def test_failed_go_back_reloads_listing(site):
    access = FakePageAccess(site)
    access.fail_back_from.add(ROOT + "catalogue/sharp-objects/index.html")
    _, result = _run(access)

    assert len(result.records) == 6
    assert result.skipped == ()
    assert access.gotos.count(_listing_url(access, "Mystery")) == 2


def test_unrestored_listing_is_reenumerated(site):
    access = FakePageAccess(site)
    # Going back from the first Travel book lands on the root page instead.
    access.back_lands_on[ROOT + "catalogue/himalayas/index.html"] = ROOT
    _, result = _run(access)

    assert _titles(result)[:2] == ["Himalayas", "Full Moon"]
    assert result.skipped == ()
    assert access.gotos.count(_listing_url(access, "Travel")) == 2


def test_lost_listing_skips_rest_of_category(site):
    access = FakePageAccess(site)
    mystery = _listing_url(access, "Mystery")
    access.fail_back_from.add(ROOT + "catalogue/sharp-objects/index.html")
    access.goto_budget[mystery] = 1  # the initial visit only; the reload fails
    _, result = _run(access)

    assert _titles(result) == ["Himalayas", "Full Moon", "Sharp Objects", "Shakespeare's Sonnets"]
    assert [(s.category, s.position) for s in result.skipped] == [("Mystery", 2), ("Mystery", 3)]


def test_observer_sees_each_record_and_total(site):
    observer = RecordingObserver()
    access = FakePageAccess(site)
    access.pages[ROOT + "catalogue/full-moon/index.html"] = book_page("Full Moon", rating="star-rating Ten")
    _, result = _run(access, observer)

    assert [i for i, _ in observer.added] == list(range(1, len(result.records) + 1))
    assert [t for _, t in observer.added] == _titles(result)
    assert observer.totals == [5]


def test_browser_error_during_extraction_skips_only_that_book(site):
    class ClosingOnFullMoon(FakePageAccess):
        async def is_visible(self, selector):
            if self.current.endswith("full-moon/index.html"):
                raise PlaywrightError("Target page, context or browser has been closed")
            return await super().is_visible(selector)

    access = ClosingOnFullMoon(site)
    _, result = _run(access)

    assert "Full Moon" not in _titles(result)
    assert len(result.records) == 5
    [skip] = result.skipped
    assert (skip.scope, skip.category, skip.position) == ("item", "Travel", 2)
    assert isinstance(skip.error, ExtractionError)
    assert isinstance(skip.error.cause, NavigationTimeout)


def test_listing_that_changes_after_reload_skips_the_book():
    class ShrinkingListing(FakePageAccess):
        # Every return to a listing drops its last book link.
        async def go_back(self):
            await super().go_back()
            links = self._page().get(".product_pod h3 a")
            if links:
                links.pop()

    access = ShrinkingListing(make_site({
        "Travel": [book_page("Himalayas"), book_page("Full Moon")],
    }))
    _, result = _run(access)

    assert _titles(result) == ["Himalayas"]
    [skip] = result.skipped
    assert (skip.category, skip.position) == ("Travel", 2)
    assert isinstance(skip.error, ElementNotFound)
    # The initial visit plus one reload before giving up.
    assert access.gotos.count(_listing_url(access, "Travel")) == 2
