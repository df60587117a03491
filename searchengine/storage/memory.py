"""
Хранилище в памяти процесса

Используется по умолчанию и в тестах. Все изменения идут под
одной asyncio-блокировкой, наружу отдаются копии записей.
"""
import asyncio
from dataclasses import replace
from datetime import datetime
from itertools import count
from typing import Dict, List, Optional, Iterable, Tuple

from ..core.interfaces import IStorage
from ..core.models import Site, SiteStatus, Page, Lemma, IndexEntry


class MemoryStorage(IStorage):
    """Хранилище на словарях"""

    def __init__(self):
        self._lock = asyncio.Lock()
        self._ids = count(1)

        self.sites: Dict[int, Site] = {}
        self.pages: Dict[int, Page] = {}
        self.lemmas: Dict[int, Lemma] = {}
        self.index: Dict[int, IndexEntry] = {}

        # Уникальные ключи
        self._page_keys: Dict[Tuple[int, str], int] = {}
        self._lemma_keys: Dict[Tuple[int, str], int] = {}

    # ========== SITES ==========

    async def find_site_by_url(self, url: str) -> Optional[Site]:
        for site in self.sites.values():
            if site.url == url:
                return replace(site)
        return None

    async def get_site(self, site_id: int) -> Optional[Site]:
        site = self.sites.get(site_id)
        return replace(site) if site else None

    async def get_sites(self) -> List[Site]:
        return [replace(site) for site in self.sites.values()]

    async def find_sites_by_status(self, status: SiteStatus) -> List[Site]:
        return [replace(site) for site in self.sites.values() if site.status == status]

    async def create_site(self, site: Site) -> Site:
        async with self._lock:
            stored = replace(site, id=next(self._ids))
            self.sites[stored.id] = stored
            return replace(stored)

    async def update_site_status(
        self,
        site_id: int,
        status: SiteStatus,
        last_error: Optional[str] = None
    ) -> None:
        async with self._lock:
            site = self.sites.get(site_id)
            if site:
                site.status = status
                site.last_error = last_error
                site.status_time = datetime.now()

    async def touch_site(self, site_id: int) -> None:
        async with self._lock:
            site = self.sites.get(site_id)
            if site:
                site.status_time = datetime.now()

    async def delete_site(self, site_id: int) -> None:
        async with self._lock:
            self.sites.pop(site_id, None)

            page_ids = [p.id for p in self.pages.values() if p.site_id == site_id]
            for page_id in page_ids:
                self._drop_page(page_id)

            lemma_ids = [l.id for l in self.lemmas.values() if l.site_id == site_id]
            for lemma_id in lemma_ids:
                self._drop_lemma(lemma_id)

    async def count_sites(self) -> int:
        return len(self.sites)

    # ========== PAGES ==========

    async def page_exists(self, site_id: int, path: str) -> bool:
        return (site_id, path) in self._page_keys

    async def find_page(self, site_id: int, path: str) -> Optional[Page]:
        page_id = self._page_keys.get((site_id, path))
        if page_id is None:
            return None
        return replace(self.pages[page_id])

    async def get_pages(self, page_ids: Iterable[int]) -> List[Page]:
        return [replace(self.pages[pid]) for pid in page_ids if pid in self.pages]

    async def create_page(self, page: Page) -> Optional[Page]:
        async with self._lock:
            key = (page.site_id, page.path)
            if key in self._page_keys or page.site_id not in self.sites:
                return None

            stored = replace(page, id=next(self._ids))
            self.pages[stored.id] = stored
            self._page_keys[key] = stored.id
            return replace(stored)

    async def delete_page(self, page_id: int) -> None:
        async with self._lock:
            self._drop_page(page_id)

    async def count_pages(self, site_id: Optional[int] = None) -> int:
        if site_id is None:
            return len(self.pages)
        return sum(1 for p in self.pages.values() if p.site_id == site_id)

    # ========== LEMMAS ==========

    async def find_lemma(self, site_id: int, lemma: str) -> Optional[Lemma]:
        lemma_id = self._lemma_keys.get((site_id, lemma))
        if lemma_id is None:
            return None
        return replace(self.lemmas[lemma_id])

    async def increment_lemma(self, site_id: int, lemma: str) -> Lemma:
        async with self._lock:
            key = (site_id, lemma)
            lemma_id = self._lemma_keys.get(key)
            if lemma_id is not None:
                stored = self.lemmas[lemma_id]
                stored.frequency += 1
            else:
                stored = Lemma(site_id=site_id, lemma=lemma, frequency=1, id=next(self._ids))
                self.lemmas[stored.id] = stored
                self._lemma_keys[key] = stored.id
            return replace(stored)

    async def decrement_lemma(self, lemma_id: int) -> Optional[Lemma]:
        async with self._lock:
            stored = self.lemmas.get(lemma_id)
            if stored is None:
                return None
            stored.frequency -= 1
            if stored.frequency <= 0:
                self._drop_lemma(lemma_id)
                return None
            return replace(stored)

    async def count_lemmas(self, site_id: Optional[int] = None) -> int:
        if site_id is None:
            return len(self.lemmas)
        return sum(1 for l in self.lemmas.values() if l.site_id == site_id)

    # ========== INDEX ==========

    async def create_index_entry(self, entry: IndexEntry) -> IndexEntry:
        async with self._lock:
            stored = replace(entry, id=next(self._ids))
            self.index[stored.id] = stored
            return replace(stored)

    async def find_index_by_page(self, page_id: int) -> List[IndexEntry]:
        return [replace(e) for e in self.index.values() if e.page_id == page_id]

    async def find_index_by_lemma(self, lemma_id: int) -> List[IndexEntry]:
        return [replace(e) for e in self.index.values() if e.lemma_id == lemma_id]

    async def delete_index_entries(self, entry_ids: Iterable[int]) -> None:
        async with self._lock:
            for entry_id in entry_ids:
                self.index.pop(entry_id, None)

    # ========== CASCADE ==========

    def _drop_page(self, page_id: int) -> None:
        page = self.pages.pop(page_id, None)
        if page is None:
            return
        self._page_keys.pop((page.site_id, page.path), None)
        for entry_id in [e.id for e in self.index.values() if e.page_id == page_id]:
            del self.index[entry_id]

    def _drop_lemma(self, lemma_id: int) -> None:
        lemma = self.lemmas.pop(lemma_id, None)
        if lemma is None:
            return
        self._lemma_keys.pop((lemma.site_id, lemma.lemma), None)
        for entry_id in [e.id for e in self.index.values() if e.lemma_id == lemma_id]:
            del self.index[entry_id]
