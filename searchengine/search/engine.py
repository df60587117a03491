"""
Поисковый движок по индексу лемм

Ранжирование:
1. Леммы запроса, встречающиеся на доле страниц >= порога, отбрасываются
2. Оставшиеся сортируются от редких к частым
3. Страницы пересекаются по всем леммам
4. Абсолютная релевантность - сумма rank по леммам, затем делится на максимум
"""
import time
import logging
from typing import List, Dict, Optional, Set, Tuple

from ..core.config import SearchConfig
from ..core.errors import NotIndexedError, NoIndexedSitesError, NoLemmasError
from ..core.interfaces import IStorage
from ..core.models import Site, SiteStatus, Page, Lemma, SearchItem, SearchResult
from .lemmas import LemmaExtractor
from .snippet import extract_title, make_snippet

logger = logging.getLogger(__name__)


class SearchEngine:
    """Поиск по проиндексированным сайтам"""

    def __init__(
        self,
        storage: IStorage,
        extractor: LemmaExtractor,
        config: SearchConfig = None,
        cache=None
    ):
        self.storage = storage
        self.extractor = extractor
        self.config = config or SearchConfig()
        self.cache = cache

    async def search(
        self,
        query: str,
        site_url: Optional[str] = None,
        offset: int = 0,
        limit: int = None
    ) -> SearchResult:
        """Выполнить поиск страниц"""
        start_time = time.time()
        if limit is None:
            limit = self.config.default_limit

        sites = await self._resolve_sites(site_url)

        query_lemmas = self.extractor.lemma_set(query)
        logger.info(f"[SEARCH] Query: '{query}' -> lemmas: {sorted(query_lemmas)}")
        if not query_lemmas:
            raise NoLemmasError()

        cache_key = None
        if self.cache:
            cache_key = self.cache.make_key(query, site_url, offset, limit)
            cached = await self.cache.get(cache_key)
            if cached:
                return cached

        ranked = await self._rank(query_lemmas, sites)

        # Пагинация
        total = len(ranked)
        if offset > total:
            ranked = []
        else:
            ranked = ranked[offset:min(offset + limit, total)]

        sites_by_id = {site.id: site for site in sites}
        page_items = [
            self._make_item(page, relevance, sites_by_id[page.site_id], query_lemmas)
            for page, relevance in ranked
        ]

        result = SearchResult(
            query=query,
            count=total,
            items=page_items,
            took_ms=int((time.time() - start_time) * 1000)
        )

        if self.cache:
            await self.cache.set(cache_key, result)

        logger.info(f"[SEARCH] Found {total} pages in {result.took_ms}ms")
        return result

    async def _resolve_sites(self, site_url: Optional[str]) -> List[Site]:
        """Сайты, по которым ищем"""
        if site_url and site_url.strip():
            site = await self.storage.find_site_by_url(site_url)
            if not site or site.status != SiteStatus.INDEXED:
                raise NotIndexedError()
            return [site]

        sites = await self.storage.find_sites_by_status(SiteStatus.INDEXED)
        if not sites:
            raise NoIndexedSitesError()
        return sites

    async def _rank(self, query_lemmas: Set[str], sites: List[Site]) -> List[Tuple[Page, float]]:
        """Отбор, пересечение и ранжирование страниц (страница, релевантность)"""
        total_pages = 0
        for site in sites:
            total_pages += await self.storage.count_pages(site.id)
        if total_pages == 0:
            return []

        # Строки лемм по сайтам и суммарная частота
        lemma_rows: Dict[str, List[Lemma]] = {}
        frequencies: Dict[str, int] = {}
        for text in query_lemmas:
            rows = []
            for site in sites:
                lemma = await self.storage.find_lemma(site.id, text)
                if lemma:
                    rows.append(lemma)

            frequency = sum(lemma.frequency for lemma in rows)
            if frequency / total_pages < self.config.frequency_threshold:
                lemma_rows[text] = rows
                frequencies[text] = frequency
            else:
                logger.info(f"[SEARCH] Lemma '{text}' is too common, skipped")

        if not lemma_rows:
            return []

        # От редких к частым: пересечение быстрее пустеет
        ordered = sorted(lemma_rows, key=lambda text: frequencies[text])

        ranks: Dict[str, Dict[int, float]] = {}
        pages: Optional[Set[int]] = None
        for text in ordered:
            lemma_ranks = {}
            for lemma in lemma_rows[text]:
                for entry in await self.storage.find_index_by_lemma(lemma.id):
                    lemma_ranks[entry.page_id] = entry.rank
            ranks[text] = lemma_ranks

            if pages is None:
                pages = set(lemma_ranks)
            else:
                pages &= set(lemma_ranks)
            if not pages:
                return []

        # Абсолютная релевантность
        absolute: Dict[int, float] = {}
        for page_id in pages:
            absolute[page_id] = sum(ranks[text].get(page_id, 0) for text in ordered)

        max_relevance = max(absolute.values(), default=0)
        if max_relevance <= 0:
            return []

        ranked = [
            (page, absolute[page.id] / max_relevance)
            for page in await self.storage.get_pages(absolute)
            if absolute[page.id] > 0
        ]
        ranked.sort(key=lambda pair: (-pair[1], pair[0].id))
        return ranked

    def _make_item(
        self,
        page: Page,
        relevance: float,
        site: Site,
        query_lemmas: Set[str]
    ) -> SearchItem:
        """Элемент выдачи: заголовок и сниппет страницы"""
        return SearchItem(
            site=site.url,
            site_name=site.name,
            uri=page.path,
            title=extract_title(page.content),
            snippet=make_snippet(
                page.content,
                query_lemmas,
                self.config.snippet_source_length,
                self.config.snippet_length
            ),
            relevance=relevance,
        )
