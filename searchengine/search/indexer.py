"""
Индексатор страниц: леммы сайта и записи индекса
"""
import logging

from ..core.interfaces import IStorage
from ..core.models import Site, Page, IndexEntry
from .lemmas import LemmaExtractor

logger = logging.getLogger(__name__)


class PageIndexer:
    """
    Индексатор страниц

    Поддерживает:
    - леммы сайта с частотой по документам (frequency = число страниц)
    - записи индекса страница/лемма с частотой в документе (rank)
    """

    def __init__(self, storage: IStorage, extractor: LemmaExtractor):
        self.storage = storage
        self.extractor = extractor

    async def index_page(self, site: Site, page: Page, text: str) -> int:
        """
        Индексировать сохранённую страницу

        Returns:
            Количество лемм страницы
        """
        lemma_counts = self.extractor.extract(text)
        logger.debug(f"[Indexer] {site.url}{page.path}: {len(lemma_counts)} lemmas")

        if not lemma_counts:
            logger.warning(f"[Indexer] No lemmas found on page {site.url}{page.path}")
            return 0

        for lemma_text, count in lemma_counts.items():
            # frequency растёт на 1 за страницу, сколько бы раз лемма ни встретилась
            lemma = await self.storage.increment_lemma(site.id, lemma_text)
            await self.storage.create_index_entry(
                IndexEntry(page_id=page.id, lemma_id=lemma.id, rank=count)
            )

        logger.info(f"[Indexer] Indexed {site.url}{page.path}: {len(lemma_counts)} lemmas")
        return len(lemma_counts)

    async def remove_page(self, page: Page) -> None:
        """Убрать страницу вместе с её вкладом в леммы сайта"""
        entries = await self.storage.find_index_by_page(page.id)

        for entry in entries:
            await self.storage.decrement_lemma(entry.lemma_id)

        await self.storage.delete_index_entries(entry.id for entry in entries)
        await self.storage.delete_page(page.id)

        logger.info(f"[Indexer] Removed page {page.path} ({len(entries)} index entries)")
