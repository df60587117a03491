"""
Обход одного сайта

Очередь url и фиксированное число воркеров. Каждая загруженная
страница сохраняется, индексируется и добавляет в очередь ссылки
своего сайта. Задание завершено, когда очередь опустела и все
воркеры закончили свои страницы.
"""
import asyncio
import random
import logging
from typing import Set

from ..core.config import IndexingConfig
from ..core.errors import PageFetchError, StorageError
from ..core.interfaces import IStorage, IPageFetcher
from ..core.models import Site, SiteStatus, Page
from ..search.indexer import PageIndexer
from .fetcher import page_text, extract_links, relative_path

logger = logging.getLogger(__name__)


class SiteCrawler:
    """
    Задание обхода сайта

    Особенности:
    - Случайная пауза перед каждым запросом
    - Параллельная обработка страниц воркерами
    - Ошибка ветки помечает сайт FAILED, остальные ветки продолжают
    - Кооперативная отмена через cancel()
    """

    def __init__(
        self,
        site: Site,
        storage: IStorage,
        fetcher: IPageFetcher,
        indexer: PageIndexer,
        config: IndexingConfig
    ):
        self.site = site
        self.storage = storage
        self.fetcher = fetcher
        self.indexer = indexer
        self.config = config

        self.queue: asyncio.Queue = asyncio.Queue()
        self.cancelled = False
        self.failed = False
        self.pages_indexed = 0

        # Пути, уже поставленные в очередь этим заданием
        self._scheduled: Set[str] = set()

    async def run(self):
        """Обойти сайт начиная с его корня"""
        logger.info(f"[Crawler] Start {self.site.url}")
        self._schedule(self.site.url)

        workers = [
            asyncio.create_task(self._worker(i))
            for i in range(max(1, self.config.workers_per_site))
        ]
        try:
            await self.queue.join()
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        logger.info(
            f"[Crawler] Finished {self.site.url}: {self.pages_indexed} pages"
            f"{' (cancelled)' if self.cancelled else ''}"
        )

    def cancel(self):
        """Остановить обход: новые страницы не берутся, очередь очищается"""
        self.cancelled = True
        while True:
            try:
                self.queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self.queue.task_done()

    async def _mark_failed(self, error: Exception):
        """Записать ошибку ветки в сайт"""
        self.failed = True
        message = getattr(error, "message", None) or str(error) or error.__class__.__name__
        try:
            await self.storage.update_site_status(self.site.id, SiteStatus.FAILED, message)
        except StorageError as e:
            logger.error(f"[Crawler] Failed to record error for {self.site.url}: {e}")

    def _schedule(self, url: str):
        path = relative_path(url, self.site.url)
        if path in self._scheduled:
            return
        self._scheduled.add(path)
        self.queue.put_nowait(url)

    async def _worker(self, worker_id: int):
        """Воркер для обработки url из очереди"""
        while True:
            url = await self.queue.get()
            try:
                await self.crawl_page(url)
            except Exception as e:
                logger.error(f"[Crawler] Worker {worker_id}: {url} failed: {e}")
                await self._mark_failed(e)
            finally:
                self.queue.task_done()

    async def crawl_page(self, url: str):
        """Обработка одной страницы"""
        path = relative_path(url, self.site.url)
        if self.cancelled or await self.storage.page_exists(self.site.id, path):
            return

        await asyncio.sleep(random.uniform(self.config.delay_min, self.config.delay_max))
        if self.cancelled:
            return

        try:
            fetched = await self.fetcher.fetch(url)
        except PageFetchError as e:
            logger.warning(f"[Crawler] {e.message}")
            return

        if fetched.is_error:
            logger.info(f"[Crawler] {url} returned {fetched.code}, skipped")
            return
        if self.cancelled:
            return

        page = await self.storage.create_page(Page(
            site_id=self.site.id,
            path=path,
            code=fetched.code,
            content=fetched.html,
        ))
        if page is None:
            # Ту же страницу уже сохранила соседняя ветка
            return

        await self.storage.touch_site(self.site.id)
        await self.indexer.index_page(self.site, page, page_text(fetched.html))
        self.pages_indexed += 1

        for link in extract_links(fetched.html, fetched.url):
            if self.cancelled:
                return
            if not link.startswith(self.site.url):
                continue
            link_path = relative_path(link, self.site.url)
            if link_path in self._scheduled:
                continue
            if await self.storage.page_exists(self.site.id, link_path):
                continue
            self._schedule(link)
