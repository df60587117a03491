"""Tests for ranking, pagination and search errors."""

import pytest

from searchengine.core.errors import NoIndexedSitesError, NoLemmasError, NotIndexedError
from searchengine.core.models import SiteStatus
from searchengine.search.engine import SearchEngine


pytestmark = pytest.mark.unit


@pytest.fixture
def engine(storage, extractor, search_config):
    return SearchEngine(storage, extractor, search_config)


class TestRanking:
    """Relevance and ordering of results."""

    async def test_relevance_is_normalized_by_max(self, engine, make_site, add_page):
        """Test rank 3 vs rank 1 gives 1.0 and 1/3 in that order."""
        site = await make_site()
        await add_page(site, "/low", "кот пёс")
        await add_page(site, "/high", "кот кот кот")
        for i in range(3):
            await add_page(site, f"/other{i}", "ёж")

        result = await engine.search("кот")

        assert result.count == 2
        assert [item.uri for item in result.items] == ["/high", "/low"]
        assert result.items[0].relevance == 1.0
        assert result.items[1].relevance == pytest.approx(1 / 3)

    async def test_all_lemmas_must_match(self, engine, make_site, add_page):
        """Test that only pages containing every query lemma are returned."""
        site = await make_site()
        await add_page(site, "/both", "кот пёс")
        await add_page(site, "/cat", "кот")
        await add_page(site, "/dog", "пёс")
        for i in range(3):
            await add_page(site, f"/other{i}", "ёж")

        result = await engine.search("кот пёс")

        assert result.count == 1
        assert result.items[0].uri == "/both"

    async def test_common_lemma_is_dropped(self, engine, make_site, add_page):
        """Test that a lemma on 9 of 10 pages is excluded from the query."""
        site = await make_site()
        for i in range(9):
            await add_page(site, f"/{i}", "кот")
        await add_page(site, "/9", "пёс")

        result = await engine.search("кот")

        assert result.count == 0
        assert result.items == []

    async def test_common_lemma_does_not_filter_others(self, engine, make_site, add_page):
        """Test that an excluded lemma does not narrow the intersection."""
        site = await make_site()
        for i in range(9):
            await add_page(site, f"/{i}", "кот")
        await add_page(site, "/9", "пёс")

        result = await engine.search("кот пёс")

        assert result.count == 1
        assert result.items[0].uri == "/9"

    async def test_unknown_word(self, engine, make_site, add_page):
        """Test that a word absent from the index finds nothing."""
        site = await make_site()
        await add_page(site, "/", "кот")

        result = await engine.search("жираф")
        assert result.count == 0

    async def test_ties_are_ordered_by_page(self, engine, make_site, add_page):
        """Test that equal relevance keeps a stable order."""
        site = await make_site()
        await add_page(site, "/a", "кот")
        await add_page(site, "/b", "кот")
        for i in range(3):
            await add_page(site, f"/other{i}", "ёж")

        result = await engine.search("кот")
        assert [item.uri for item in result.items] == ["/a", "/b"]

    async def test_search_across_sites(self, engine, make_site, add_page):
        """Test that all indexed sites are searched when no site is given."""
        first = await make_site()
        second = await make_site(url="https://other.ru", name="Другой")
        await add_page(first, "/", "кот")
        await add_page(second, "/", "кот кот")
        for i in range(3):
            await add_page(first, f"/other{i}", "ёж")
            await add_page(second, f"/other{i}", "ёж")

        result = await engine.search("кот")

        assert result.count == 2
        assert result.items[0].site == "https://other.ru"
        assert result.items[0].site_name == "Другой"

    async def test_search_single_site(self, engine, make_site, add_page):
        """Test that the site parameter restricts results."""
        first = await make_site()
        second = await make_site(url="https://other.ru", name="Другой")
        await add_page(first, "/", "кот")
        await add_page(second, "/", "кот")
        for i in range(3):
            await add_page(first, f"/other{i}", "ёж")

        result = await engine.search("кот", site_url="https://site.ru")

        assert result.count == 1
        assert result.items[0].site == "https://site.ru"


class TestPagination:
    """Offset and limit handling."""

    @pytest.fixture
    async def five_pages(self, make_site, add_page):
        site = await make_site()
        for i in range(5):
            await add_page(site, f"/{i}", "кот " * (i + 1))
        for i in range(10):
            await add_page(site, f"/other{i}", "ёж")
        return site

    async def test_tail_slice(self, engine, five_pages):
        """Test that offset 3 limit 5 returns the last two pages."""
        result = await engine.search("кот", offset=3, limit=5)

        assert result.count == 5
        assert len(result.items) == 2

    async def test_offset_past_end(self, engine, five_pages):
        """Test that an offset past the end gives an empty page with full count."""
        result = await engine.search("кот", offset=10, limit=5)

        assert result.count == 5
        assert result.items == []

    async def test_limit(self, engine, five_pages):
        """Test that the first page holds the most relevant results."""
        result = await engine.search("кот", offset=0, limit=2)

        assert result.count == 5
        assert [item.uri for item in result.items] == ["/4", "/3"]


class TestSearchItems:
    """Title and snippet of result items."""

    async def test_item_has_title_and_snippet(self, engine, make_site, add_page):
        site = await make_site()
        await add_page(site, "/", "кот спит", title="Про кота")
        for i in range(3):
            await add_page(site, f"/other{i}", "ёж")

        item = (await engine.search("кот")).items[0]

        assert item.title == "Про кота"
        assert "<b>кот</b>" in item.snippet
        assert item.to_dict()["siteName"] == "Сайт"


class TestSearchErrors:
    """Errors raised before ranking."""

    async def test_unknown_site(self, engine, make_site):
        """Test that searching an unknown site fails."""
        await make_site()
        with pytest.raises(NotIndexedError):
            await engine.search("кот", site_url="https://nowhere.ru")

    async def test_site_not_indexed(self, engine, make_site):
        """Test that a site still being indexed cannot be searched."""
        await make_site(status=SiteStatus.INDEXING)
        with pytest.raises(NotIndexedError):
            await engine.search("кот", site_url="https://site.ru")

    async def test_no_indexed_sites(self, engine, make_site):
        """Test that search without indexed sites fails."""
        await make_site(status=SiteStatus.FAILED)
        with pytest.raises(NoIndexedSitesError):
            await engine.search("кот")

    async def test_query_without_lemmas(self, engine, make_site):
        """Test that a query of digits and Latin words fails."""
        await make_site()
        with pytest.raises(NoLemmasError):
            await engine.search("123 hello")
