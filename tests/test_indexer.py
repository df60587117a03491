"""Tests for the page indexer and lemma bookkeeping."""

import pytest

from searchengine.core.models import Page


pytestmark = pytest.mark.unit


class TestPageIndexer:
    """Lemma frequency and index entries."""

    async def test_index_entries_carry_rank(self, storage, make_site, add_page):
        """Test that rank is the in-page occurrence count."""
        site = await make_site()
        page = await add_page(site, "/", "кот кот пёс")

        entries = await storage.find_index_by_page(page.id)
        ranks = {}
        for entry in entries:
            lemma = storage.lemmas[entry.lemma_id]
            ranks[lemma.lemma] = entry.rank
        assert ranks == {"кот": 2, "пёс": 1}

    async def test_frequency_counts_pages_not_occurrences(self, storage, make_site, add_page):
        """Test that frequency grows by one per page."""
        site = await make_site()
        await add_page(site, "/a", "кот кот кот")
        await add_page(site, "/b", "кот")

        lemma = await storage.find_lemma(site.id, "кот")
        assert lemma.frequency == 2
        assert len(await storage.find_index_by_lemma(lemma.id)) == 2

    async def test_page_without_lemmas(self, storage, make_site, indexer):
        """Test that a page with no usable words is stored without index."""
        site = await make_site()
        page = await storage.create_page(Page(site_id=site.id, path="/", code=200, content=""))

        assert await indexer.index_page(site, page, "123 abc") == 0
        assert await storage.count_lemmas(site.id) == 0
        assert await storage.find_index_by_page(page.id) == []

    async def test_remove_page_undoes_its_contribution(self, storage, make_site, add_page, indexer):
        """Test that removing a page decrements and drops lemmas."""
        site = await make_site()
        first = await add_page(site, "/a", "кот пёс")
        await add_page(site, "/b", "кот")

        await indexer.remove_page(first)

        assert await storage.find_page(site.id, "/a") is None
        assert (await storage.find_lemma(site.id, "кот")).frequency == 1
        assert await storage.find_lemma(site.id, "пёс") is None
        assert await storage.find_index_by_page(first.id) == []

    async def test_reindex_is_idempotent(self, storage, make_site, add_page, indexer):
        """Test that re-indexing the same content leaves the index unchanged."""
        site = await make_site()
        page = await add_page(site, "/a", "кот кот пёс")
        await add_page(site, "/b", "кот")

        await indexer.remove_page(page)
        await add_page(site, "/a", "кот кот пёс")

        assert await storage.count_pages(site.id) == 2
        assert (await storage.find_lemma(site.id, "кот")).frequency == 2
        assert (await storage.find_lemma(site.id, "пёс")).frequency == 1

    async def test_frequency_matches_index_entries(self, storage, make_site, add_page, indexer):
        """Test that every lemma frequency equals its index entry count."""
        site = await make_site()
        pages = [
            await add_page(site, "/1", "кот пёс ёж"),
            await add_page(site, "/2", "кот ёж"),
            await add_page(site, "/3", "ёж"),
        ]
        await indexer.remove_page(pages[1])

        for lemma in list(storage.lemmas.values()):
            entries = await storage.find_index_by_lemma(lemma.id)
            assert lemma.frequency == len(entries) > 0


class TestMemoryStorage:
    """Uniqueness and cascade rules of the in-memory storage."""

    async def test_duplicate_page_is_rejected(self, storage, make_site):
        """Test that (site, path) is unique."""
        site = await make_site()
        first = await storage.create_page(Page(site_id=site.id, path="/", code=200, content=""))
        second = await storage.create_page(Page(site_id=site.id, path="/", code=200, content=""))

        assert first is not None
        assert second is None
        assert await storage.count_pages() == 1

    async def test_delete_site_cascades(self, storage, make_site, add_page):
        """Test that deleting a site removes pages, lemmas and index."""
        site = await make_site()
        other = await make_site(url="https://other.ru", name="Другой")
        await add_page(site, "/", "кот")
        await add_page(other, "/", "кот")

        await storage.delete_site(site.id)

        assert await storage.count_sites() == 1
        assert await storage.count_pages() == 1
        assert await storage.count_lemmas() == 1
        assert len(storage.index) == 1

    async def test_lemmas_are_per_site(self, storage, make_site, add_page):
        """Test that the same word on two sites makes two lemmas."""
        site = await make_site()
        other = await make_site(url="https://other.ru", name="Другой")
        await add_page(site, "/", "кот")
        await add_page(other, "/", "кот")

        assert await storage.count_lemmas(site.id) == 1
        assert await storage.count_lemmas() == 2
