"""Shared test fixtures."""

import re
from typing import Dict, List

import pytest

from searchengine.core.config import IndexingConfig, SearchConfig, SiteConfig
from searchengine.core.errors import PageFetchError, WrongCharacterError
from searchengine.core.interfaces import FetchedPage, IMorphology, IPageFetcher
from searchengine.core.models import Page, Site, SiteStatus
from searchengine.search.indexer import PageIndexer
from searchengine.search.lemmas import LemmaExtractor
from searchengine.storage.memory import MemoryStorage


SITE_URL = "https://site.ru"


class FakeMorphology(IMorphology):
    """Every Cyrillic word is its own normal form."""

    def normal_forms(self, word: str) -> List[str]:
        if not re.fullmatch(r"[а-яё]+", word):
            raise WrongCharacterError(word)
        return [word]


class FakeFetcher(IPageFetcher):
    """Serves pages from a dict and records every requested url."""

    def __init__(self, pages: Dict[str, FetchedPage] = None, failures: Dict[str, Exception] = None):
        self.pages = pages or {}
        self.failures = failures or {}
        self.calls: List[str] = []
        self.closed = False

    def add(self, url: str, html: str, code: int = 200):
        self.pages[url] = FetchedPage(url=url, code=code, html=html)

    async def fetch(self, url: str) -> FetchedPage:
        self.calls.append(url)
        if url in self.failures:
            raise self.failures[url]
        if url not in self.pages:
            raise PageFetchError(f"Ошибка загрузки {url}: not found in fake")
        return self.pages[url]

    async def close(self):
        self.closed = True


def html_page(title: str, body: str, links: List[str] = ()) -> str:
    anchors = "".join(f'<a href="{href}">link</a>' for href in links)
    return f"<html><head><title>{title}</title></head><body><p>{body}</p>{anchors}</body></html>"


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def extractor():
    return LemmaExtractor(FakeMorphology())


@pytest.fixture
def indexer(storage, extractor):
    return PageIndexer(storage, extractor)


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def indexing_config():
    return IndexingConfig(
        sites=[SiteConfig(url=SITE_URL, name="Сайт")],
        delay_min=0,
        delay_max=0,
        workers_per_site=2,
    )


@pytest.fixture
def search_config():
    return SearchConfig()


@pytest.fixture
def make_site(storage):
    async def _make(url: str = SITE_URL, name: str = "Сайт", status: SiteStatus = SiteStatus.INDEXED):
        return await storage.create_site(Site(url=url, name=name, status=status))
    return _make


@pytest.fixture
def add_page(storage, indexer):
    """Store and index a page whose text is given directly."""
    async def _add(site: Site, path: str, text: str, title: str = ""):
        page = await storage.create_page(Page(
            site_id=site.id,
            path=path,
            code=200,
            content=html_page(title, text),
        ))
        await indexer.index_page(site, page, text)
        return page
    return _add
