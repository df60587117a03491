"""Tests for the single-site crawl job."""

import asyncio

import pytest

from searchengine.core.models import SiteStatus
from searchengine.crawler.crawler import SiteCrawler

from .conftest import SITE_URL, FakeFetcher, html_page


pytestmark = pytest.mark.unit


@pytest.fixture
def make_crawler(storage, fetcher, indexer, indexing_config, make_site):
    async def _make(status: SiteStatus = SiteStatus.INDEXING):
        site = await make_site(status=status)
        return SiteCrawler(site, storage, fetcher, indexer, indexing_config)
    return _make


class TestSiteCrawler:
    """Traversal, scope and failure handling."""

    async def test_follows_internal_links(self, storage, fetcher, make_crawler):
        """Test that every reachable page of the site is stored once."""
        fetcher.add(SITE_URL, html_page("Главная", "кот", ["/a", "/b"]))
        fetcher.add(f"{SITE_URL}/a", html_page("А", "пёс", ["/", "/b"]))
        fetcher.add(f"{SITE_URL}/b", html_page("Б", "ёж", ["/a"]))
        crawler = await make_crawler()

        await crawler.run()

        assert crawler.pages_indexed == 3
        assert await storage.count_pages(crawler.site.id) == 3
        assert sorted(fetcher.calls) == sorted([SITE_URL, f"{SITE_URL}/a", f"{SITE_URL}/b"])

    async def test_external_links_are_skipped(self, storage, fetcher, make_crawler):
        """Test that links outside the site prefix are never fetched."""
        fetcher.add(SITE_URL, html_page("Главная", "кот", ["https://other.ru/x", "/a"]))
        fetcher.add(f"{SITE_URL}/a", html_page("А", "пёс"))
        crawler = await make_crawler()

        await crawler.run()

        assert "https://other.ru/x" not in fetcher.calls
        assert await storage.count_pages(crawler.site.id) == 2

    async def test_error_status_is_not_stored(self, storage, fetcher, make_crawler):
        """Test that a 404 page is neither stored nor followed."""
        fetcher.add(SITE_URL, html_page("Главная", "кот", ["/missing"]))
        fetcher.add(f"{SITE_URL}/missing", "", code=404)
        crawler = await make_crawler()

        await crawler.run()

        assert await storage.find_page(crawler.site.id, "/missing") is None
        assert crawler.pages_indexed == 1
        assert not crawler.failed

    async def test_fetch_error_abandons_branch(self, storage, fetcher, make_crawler):
        """Test that a network error only skips the page."""
        fetcher.add(SITE_URL, html_page("Главная", "кот", ["/gone", "/a"]))
        fetcher.add(f"{SITE_URL}/a", html_page("А", "пёс"))
        crawler = await make_crawler()

        await crawler.run()

        site = await storage.get_site(crawler.site.id)
        assert site.status == SiteStatus.INDEXING
        assert await storage.count_pages(crawler.site.id) == 2

    async def test_unexpected_error_marks_site_failed(self, storage, fetcher, make_crawler):
        """Test that a crashing branch records its error on the site."""
        fetcher.add(SITE_URL, html_page("Главная", "кот", ["/boom", "/a"]))
        fetcher.add(f"{SITE_URL}/a", html_page("А", "пёс"))
        fetcher.failures[f"{SITE_URL}/boom"] = RuntimeError("boom")
        crawler = await make_crawler()

        await crawler.run()

        site = await storage.get_site(crawler.site.id)
        assert crawler.failed
        assert site.status == SiteStatus.FAILED
        assert site.last_error == "boom"
        # other branches keep going
        assert await storage.find_page(crawler.site.id, "/a") is not None

    async def test_existing_page_is_not_refetched(self, storage, fetcher, make_crawler, add_page):
        """Test that a page already stored for the site is skipped."""
        fetcher.add(SITE_URL, html_page("Главная", "кот", ["/a"]))
        crawler = await make_crawler()
        await add_page(crawler.site, "/a", "пёс")

        await crawler.run()

        assert f"{SITE_URL}/a" not in fetcher.calls

    async def test_cancel_stops_before_persisting(self, storage, indexer, indexing_config, make_site):
        """Test that a page fetched after cancellation is discarded."""
        site = await make_site(status=SiteStatus.INDEXING)

        class CancellingFetcher(FakeFetcher):
            async def fetch(self, url):
                crawler.cancel()
                return await super().fetch(url)

        fetcher = CancellingFetcher()
        fetcher.add(SITE_URL, html_page("Главная", "кот", ["/a"]))
        crawler = SiteCrawler(site, storage, fetcher, indexer, indexing_config)

        await asyncio.wait_for(crawler.run(), timeout=5)

        assert crawler.cancelled
        assert crawler.pages_indexed == 0
        assert await storage.count_pages(site.id) == 0
        assert fetcher.calls == [SITE_URL]

    async def test_cancel_drains_queue(self, make_crawler):
        """Test that cancel empties the queue so the job can finish."""
        crawler = await make_crawler()
        crawler._schedule(f"{SITE_URL}/a")
        crawler._schedule(f"{SITE_URL}/b")

        crawler.cancel()

        assert crawler.queue.empty()
        await asyncio.wait_for(crawler.queue.join(), timeout=1)
