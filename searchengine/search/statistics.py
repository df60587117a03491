"""
Статистика индекса
"""
from typing import Callable

from ..core.interfaces import IStorage
from ..core.models import Statistics, SiteStatistics, TotalStatistics


class StatisticsService:
    """Сводка по сайтам, страницам и леммам"""

    def __init__(self, storage: IStorage, is_indexing: Callable[[], bool]):
        self.storage = storage
        self.is_indexing = is_indexing

    async def get_statistics(self) -> Statistics:
        total = TotalStatistics(
            sites=await self.storage.count_sites(),
            pages=await self.storage.count_pages(),
            lemmas=await self.storage.count_lemmas(),
            indexing=self.is_indexing(),
        )

        detailed = []
        for site in await self.storage.get_sites():
            detailed.append(SiteStatistics(
                url=site.url,
                name=site.name,
                status=site.status.value,
                status_time=int(site.status_time.timestamp()),
                error=site.last_error,
                pages=await self.storage.count_pages(site.id),
                lemmas=await self.storage.count_lemmas(site.id),
            ))

        return Statistics(total=total, detailed=detailed)
