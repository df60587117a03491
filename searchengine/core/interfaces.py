"""
Интерфейсы (абстрактные классы) поискового движка
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Iterable
from .models import Site, SiteStatus, Page, Lemma, IndexEntry


@dataclass
class FetchedPage:
    """Ответ сервера на запрос страницы"""
    url: str  # итоговый url после редиректов
    code: int
    html: str

    @property
    def is_error(self) -> bool:
        return 400 <= self.code < 600


class IStorage(ABC):
    """
    Интерфейс хранилища

    Четыре сущности: Site, Page, Lemma, IndexEntry.
    Удаление сайта каскадно удаляет его страницы, леммы и индекс.
    """

    # ========== SITES ==========

    @abstractmethod
    async def find_site_by_url(self, url: str) -> Optional[Site]:
        pass

    @abstractmethod
    async def get_site(self, site_id: int) -> Optional[Site]:
        pass

    @abstractmethod
    async def get_sites(self) -> List[Site]:
        pass

    @abstractmethod
    async def find_sites_by_status(self, status: SiteStatus) -> List[Site]:
        pass

    @abstractmethod
    async def create_site(self, site: Site) -> Site:
        """Сохранить новый сайт, вернуть его с id"""
        pass

    @abstractmethod
    async def update_site_status(
        self,
        site_id: int,
        status: SiteStatus,
        last_error: Optional[str] = None
    ) -> None:
        """Сменить статус (status_time обновляется)"""
        pass

    @abstractmethod
    async def touch_site(self, site_id: int) -> None:
        """Обновить status_time, не трогая статус"""
        pass

    @abstractmethod
    async def delete_site(self, site_id: int) -> None:
        """Удалить сайт вместе со страницами, леммами и индексом"""
        pass

    @abstractmethod
    async def count_sites(self) -> int:
        pass

    # ========== PAGES ==========

    @abstractmethod
    async def page_exists(self, site_id: int, path: str) -> bool:
        pass

    @abstractmethod
    async def find_page(self, site_id: int, path: str) -> Optional[Page]:
        pass

    @abstractmethod
    async def get_pages(self, page_ids: Iterable[int]) -> List[Page]:
        pass

    @abstractmethod
    async def create_page(self, page: Page) -> Optional[Page]:
        """
        Сохранить страницу

        Returns:
            Страницу с id или None, если (site, path) уже занят
        """
        pass

    @abstractmethod
    async def delete_page(self, page_id: int) -> None:
        pass

    @abstractmethod
    async def count_pages(self, site_id: Optional[int] = None) -> int:
        pass

    # ========== LEMMAS ==========

    @abstractmethod
    async def find_lemma(self, site_id: int, lemma: str) -> Optional[Lemma]:
        pass

    @abstractmethod
    async def increment_lemma(self, site_id: int, lemma: str) -> Lemma:
        """Создать лемму с frequency=1 или атомарно увеличить frequency"""
        pass

    @abstractmethod
    async def decrement_lemma(self, lemma_id: int) -> Optional[Lemma]:
        """
        Атомарно уменьшить frequency

        Returns:
            Лемму после уменьшения или None, если она удалена (дошла до нуля)
        """
        pass

    @abstractmethod
    async def count_lemmas(self, site_id: Optional[int] = None) -> int:
        pass

    # ========== INDEX ==========

    @abstractmethod
    async def create_index_entry(self, entry: IndexEntry) -> IndexEntry:
        pass

    @abstractmethod
    async def find_index_by_page(self, page_id: int) -> List[IndexEntry]:
        pass

    @abstractmethod
    async def find_index_by_lemma(self, lemma_id: int) -> List[IndexEntry]:
        pass

    @abstractmethod
    async def delete_index_entries(self, entry_ids: Iterable[int]) -> None:
        pass

    async def close(self) -> None:
        """Освободить ресурсы"""
        pass


class IMorphology(ABC):
    """Интерфейс морфологического анализатора"""

    @abstractmethod
    def normal_forms(self, word: str) -> List[str]:
        """
        Нормальные формы слова (в нижнем регистре)

        Raises:
            WrongCharacterError: слово не из алфавита анализатора
        """
        pass


class IPageFetcher(ABC):
    """Интерфейс загрузчика страниц"""

    @abstractmethod
    async def fetch(self, url: str) -> FetchedPage:
        """
        Загрузить страницу

        Raises:
            PageFetchError: сетевая ошибка, таймаут или не-HTML ответ
        """
        pass

    async def close(self) -> None:
        pass
