"""
Управление индексацией: полный обход сайтов и переиндексация страницы
"""
import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from ..core.config import IndexingConfig
from ..core.errors import (
    SearchEngineError, AlreadyRunningError, NotRunningError, OutOfScopeError,
    PageFetchError, StorageError
)
from ..core.interfaces import IStorage, IPageFetcher
from ..core.models import Site, SiteStatus, Page
from ..search.indexer import PageIndexer
from .crawler import SiteCrawler
from .fetcher import page_text, relative_path

logger = logging.getLogger(__name__)

STOPPED_BY_USER = "Индексация остановлена пользователем"
NOTHING_FETCHED = "Не удалось загрузить ни одной страницы сайта"


class IndexingManager:
    """
    Владелец состояния индексации

    Хранит флаг "идёт индексация", активные задания обхода и фоновую
    задачу, которая ждёт их завершения. Все переходы состояния
    выполняются под одной блокировкой.
    """

    def __init__(
        self,
        config: IndexingConfig,
        storage: IStorage,
        fetcher: IPageFetcher,
        indexer: PageIndexer,
        cache=None
    ):
        self.config = config
        self.storage = storage
        self.fetcher = fetcher
        self.indexer = indexer
        self.cache = cache

        self._lock = asyncio.Lock()
        self._running = False
        self._crawlers: List[SiteCrawler] = []
        self._waiter: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def start_indexing(self):
        """
        Запуск полной индексации всех сайтов из конфигурации

        Старые данные сайта удаляются целиком, обход идёт в фоне.
        """
        async with self._lock:
            if self._running:
                raise AlreadyRunningError()
            self._running = True

            crawlers = []
            try:
                for site_config in self.config.sites:
                    existing = await self.storage.find_site_by_url(site_config.url)
                    if existing:
                        await self.storage.delete_site(existing.id)

                    site = await self.storage.create_site(Site(
                        url=site_config.url,
                        name=site_config.name,
                        status=SiteStatus.INDEXING,
                        status_time=datetime.now(),
                    ))
                    crawlers.append(SiteCrawler(
                        site, self.storage, self.fetcher, self.indexer, self.config
                    ))
            except Exception as e:
                self._running = False
                # Созданные сайты не остаются в INDEXING без обхода
                await self._fail_sites(
                    [crawler.site for crawler in crawlers],
                    getattr(e, "message", None) or str(e) or e.__class__.__name__
                )
                raise

            self._crawlers = crawlers
            self._waiter = asyncio.create_task(self._wait_all(crawlers))

        await self._invalidate_cache()
        logger.info(f"[Indexing] Started for {len(crawlers)} sites")

    async def stop_indexing(self):
        """Остановка индексации: сайты в процессе помечаются FAILED"""
        async with self._lock:
            if not self._running:
                raise NotRunningError()

            for crawler in self._crawlers:
                crawler.cancel()
            self._crawlers = []
            self._running = False

            for site in await self.storage.find_sites_by_status(SiteStatus.INDEXING):
                await self.storage.update_site_status(
                    site.id, SiteStatus.FAILED, STOPPED_BY_USER
                )

        await self._invalidate_cache()
        logger.info("[Indexing] Stopped by user")

    async def index_page(self, url: str):
        """Индексация или переиндексация одной страницы"""
        site_config = self.config.find_site(url)
        if site_config is None:
            raise OutOfScopeError()

        site = await self.storage.find_site_by_url(site_config.url)
        created = site is None
        if created:
            site = await self.storage.create_site(Site(
                url=site_config.url,
                name=site_config.name,
                status=SiteStatus.INDEXING,
                status_time=datetime.now(),
            ))

        path = relative_path(url, site.url)
        existing = await self.storage.find_page(site.id, path)
        if existing:
            await self.indexer.remove_page(existing)

        try:
            fetched = await self.fetcher.fetch(url)
            if fetched.is_error:
                raise PageFetchError(f"Страница вернула ошибку {fetched.code}")

            page = await self.storage.create_page(Page(
                site_id=site.id,
                path=path,
                code=fetched.code,
                content=fetched.html,
            ))
            if page is None:
                logger.info(f"[Indexing] {url} was stored by a running crawl")
            else:
                await self.indexer.index_page(site, page, page_text(fetched.html))
        except SearchEngineError:
            raise
        except Exception as e:
            logger.error(f"[Indexing] Failed to index {url}: {e}")
            raise PageFetchError(f"Ошибка при индексации страницы: {e}")

        if created:
            await self.storage.update_site_status(site.id, SiteStatus.INDEXED)
        else:
            await self.storage.touch_site(site.id)

        await self._invalidate_cache()
        logger.info(f"[Indexing] Page indexed: {url}")

    async def wait(self):
        """Дождаться завершения текущей индексации"""
        if self._waiter:
            await asyncio.shield(self._waiter)

    async def shutdown(self):
        """Остановка при завершении приложения"""
        for crawler in self._crawlers:
            crawler.cancel()
        if self._waiter and not self._waiter.done():
            self._waiter.cancel()
            await asyncio.gather(self._waiter, return_exceptions=True)
        self._crawlers = []
        self._running = False

    async def _wait_all(self, crawlers: List[SiteCrawler]):
        """Фоновое ожидание всех заданий обхода"""
        results = await asyncio.gather(
            *(self._run_crawler(crawler) for crawler in crawlers),
            return_exceptions=True
        )
        for crawler, result in zip(crawlers, results):
            if isinstance(result, Exception):
                logger.error(f"[Indexing] Crawl of {crawler.site.url} crashed: {result}")

        async with self._lock:
            # stop_indexing мог уже сбросить флаг и запустить новую индексацию
            if self._crawlers is crawlers:
                self._crawlers = []
                self._running = False

        await self._invalidate_cache()
        logger.info("[Indexing] All crawl jobs finished")

    async def _run_crawler(self, crawler: SiteCrawler):
        await crawler.run()
        if crawler.cancelled:
            return

        site = await self.storage.get_site(crawler.site.id)
        if site is None or site.status != SiteStatus.INDEXING:
            return

        if crawler.pages_indexed == 0:
            await self.storage.update_site_status(site.id, SiteStatus.FAILED, NOTHING_FETCHED)
        else:
            await self.storage.update_site_status(site.id, SiteStatus.INDEXED)
            logger.info(f"[Indexing] {site.url} indexed: {crawler.pages_indexed} pages")

    async def _fail_sites(self, sites: List[Site], message: str):
        """Пометить сайты FAILED после неудачного запуска"""
        for site in sites:
            try:
                await self.storage.update_site_status(site.id, SiteStatus.FAILED, message)
            except StorageError as e:
                logger.error(f"[Indexing] Failed to mark {site.url} as FAILED: {e}")

    async def _invalidate_cache(self):
        if self.cache:
            await self.cache.invalidate()
