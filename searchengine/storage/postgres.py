"""
PostgreSQL хранилище - сайты, страницы, леммы, индекс
"""
import asyncpg
import logging
from contextlib import asynccontextmanager
from typing import Optional, List, Iterable

from ..core.config import DatabaseConfig
from ..core.errors import StorageError
from ..core.interfaces import IStorage
from ..core.models import Site, SiteStatus, Page, Lemma, IndexEntry

logger = logging.getLogger(__name__)


class PostgresStorage(IStorage):
    """PostgreSQL подключение и операции"""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.pool: Optional[asyncpg.Pool] = None

    async def connect(self):
        """Создание пула подключений"""
        try:
            self.pool = await asyncpg.create_pool(
                dsn=self.config.url,
                min_size=2,
                max_size=self.config.pool_size
            )
        except (asyncpg.PostgresError, OSError) as e:
            raise StorageError(f"Ошибка базы данных: {e}")

        # Создаем таблицы если не существуют
        await self._init_tables()
        logger.info(f"[Storage] Connected to PostgreSQL {self.config.host}:{self.config.port}")

    async def close(self):
        """Закрытие пула подключений"""
        if self.pool:
            await self.pool.close()
            self.pool = None

    @asynccontextmanager
    async def _acquire(self):
        """Соединение из пула; ошибки драйвера превращаются в StorageError"""
        if not self.pool:
            raise StorageError("Ошибка базы данных: нет подключения")
        try:
            async with self.pool.acquire() as conn:
                yield conn
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error(f"[Storage] Database error: {e}")
            raise StorageError(f"Ошибка при работе с базой данных: {e}")

    async def _init_tables(self):
        """Создание таблиц при первом запуске"""
        async with self._acquire() as conn:
            await conn.execute('''
                CREATE TABLE IF NOT EXISTS site (
                    id SERIAL PRIMARY KEY,
                    status VARCHAR(16) NOT NULL
                        CHECK (status IN ('INDEXING', 'INDEXED', 'FAILED')),
                    status_time TIMESTAMP NOT NULL,
                    last_error TEXT,
                    url VARCHAR(255) NOT NULL,
                    name VARCHAR(255) NOT NULL
                );

                CREATE TABLE IF NOT EXISTS page (
                    id SERIAL PRIMARY KEY,
                    site_id INTEGER NOT NULL REFERENCES site(id) ON DELETE CASCADE,
                    path TEXT NOT NULL,
                    code INTEGER NOT NULL,
                    content TEXT NOT NULL,
                    UNIQUE(site_id, path)
                );

                CREATE TABLE IF NOT EXISTS lemma (
                    id SERIAL PRIMARY KEY,
                    site_id INTEGER NOT NULL REFERENCES site(id) ON DELETE CASCADE,
                    lemma VARCHAR(255) NOT NULL,
                    frequency INTEGER NOT NULL,
                    UNIQUE(site_id, lemma)
                );

                CREATE TABLE IF NOT EXISTS index_entry (
                    id SERIAL PRIMARY KEY,
                    page_id INTEGER NOT NULL REFERENCES page(id) ON DELETE CASCADE,
                    lemma_id INTEGER NOT NULL REFERENCES lemma(id) ON DELETE CASCADE,
                    rank REAL NOT NULL,
                    UNIQUE(page_id, lemma_id)
                );

                CREATE INDEX IF NOT EXISTS idx_site_url ON site(url);
                CREATE INDEX IF NOT EXISTS idx_index_entry_lemma ON index_entry(lemma_id);
            ''')

    # ========== SITES ==========

    async def find_site_by_url(self, url: str) -> Optional[Site]:
        async with self._acquire() as conn:
            row = await conn.fetchrow('SELECT * FROM site WHERE url = $1 LIMIT 1', url)
            return _site(row) if row else None

    async def get_site(self, site_id: int) -> Optional[Site]:
        async with self._acquire() as conn:
            row = await conn.fetchrow('SELECT * FROM site WHERE id = $1', site_id)
            return _site(row) if row else None

    async def get_sites(self) -> List[Site]:
        async with self._acquire() as conn:
            rows = await conn.fetch('SELECT * FROM site ORDER BY id')
            return [_site(row) for row in rows]

    async def find_sites_by_status(self, status: SiteStatus) -> List[Site]:
        async with self._acquire() as conn:
            rows = await conn.fetch(
                'SELECT * FROM site WHERE status = $1 ORDER BY id', status.value
            )
            return [_site(row) for row in rows]

    async def create_site(self, site: Site) -> Site:
        async with self._acquire() as conn:
            row = await conn.fetchrow('''
                INSERT INTO site (status, status_time, last_error, url, name)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING *
            ''', site.status.value, site.status_time, site.last_error, site.url, site.name)
            return _site(row)

    async def update_site_status(
        self,
        site_id: int,
        status: SiteStatus,
        last_error: Optional[str] = None
    ) -> None:
        async with self._acquire() as conn:
            await conn.execute('''
                UPDATE site SET status = $2, last_error = $3, status_time = NOW()
                WHERE id = $1
            ''', site_id, status.value, last_error)

    async def touch_site(self, site_id: int) -> None:
        async with self._acquire() as conn:
            await conn.execute('UPDATE site SET status_time = NOW() WHERE id = $1', site_id)

    async def delete_site(self, site_id: int) -> None:
        async with self._acquire() as conn:
            await conn.execute('DELETE FROM site WHERE id = $1', site_id)

    async def count_sites(self) -> int:
        async with self._acquire() as conn:
            return await conn.fetchval('SELECT COUNT(*) FROM site')

    # ========== PAGES ==========

    async def page_exists(self, site_id: int, path: str) -> bool:
        async with self._acquire() as conn:
            return await conn.fetchval(
                'SELECT EXISTS(SELECT 1 FROM page WHERE site_id = $1 AND path = $2)',
                site_id, path
            )

    async def find_page(self, site_id: int, path: str) -> Optional[Page]:
        async with self._acquire() as conn:
            row = await conn.fetchrow(
                'SELECT * FROM page WHERE site_id = $1 AND path = $2', site_id, path
            )
            return _page(row) if row else None

    async def get_pages(self, page_ids: Iterable[int]) -> List[Page]:
        ids = list(page_ids)
        if not ids:
            return []
        async with self._acquire() as conn:
            rows = await conn.fetch('SELECT * FROM page WHERE id = ANY($1::int[])', ids)
            return [_page(row) for row in rows]

    async def create_page(self, page: Page) -> Optional[Page]:
        async with self._acquire() as conn:
            # Параллельные ветки обхода могут прийти с одним путём
            row = await conn.fetchrow('''
                INSERT INTO page (site_id, path, code, content)
                VALUES ($1, $2, $3, $4)
                ON CONFLICT (site_id, path) DO NOTHING
                RETURNING *
            ''', page.site_id, page.path, page.code, page.content)
            return _page(row) if row else None

    async def delete_page(self, page_id: int) -> None:
        async with self._acquire() as conn:
            await conn.execute('DELETE FROM page WHERE id = $1', page_id)

    async def count_pages(self, site_id: Optional[int] = None) -> int:
        async with self._acquire() as conn:
            if site_id is None:
                return await conn.fetchval('SELECT COUNT(*) FROM page')
            return await conn.fetchval('SELECT COUNT(*) FROM page WHERE site_id = $1', site_id)

    # ========== LEMMAS ==========

    async def find_lemma(self, site_id: int, lemma: str) -> Optional[Lemma]:
        async with self._acquire() as conn:
            row = await conn.fetchrow(
                'SELECT * FROM lemma WHERE site_id = $1 AND lemma = $2', site_id, lemma
            )
            return _lemma(row) if row else None

    async def increment_lemma(self, site_id: int, lemma: str) -> Lemma:
        async with self._acquire() as conn:
            row = await conn.fetchrow('''
                INSERT INTO lemma (site_id, lemma, frequency)
                VALUES ($1, $2, 1)
                ON CONFLICT (site_id, lemma)
                DO UPDATE SET frequency = lemma.frequency + 1
                RETURNING *
            ''', site_id, lemma)
            return _lemma(row)

    async def decrement_lemma(self, lemma_id: int) -> Optional[Lemma]:
        async with self._acquire() as conn:
            async with conn.transaction():
                row = await conn.fetchrow('''
                    UPDATE lemma SET frequency = frequency - 1
                    WHERE id = $1
                    RETURNING *
                ''', lemma_id)
                if row is None:
                    return None
                if row["frequency"] <= 0:
                    await conn.execute('DELETE FROM lemma WHERE id = $1', lemma_id)
                    return None
                return _lemma(row)

    async def count_lemmas(self, site_id: Optional[int] = None) -> int:
        async with self._acquire() as conn:
            if site_id is None:
                return await conn.fetchval('SELECT COUNT(*) FROM lemma')
            return await conn.fetchval('SELECT COUNT(*) FROM lemma WHERE site_id = $1', site_id)

    # ========== INDEX ==========

    async def create_index_entry(self, entry: IndexEntry) -> IndexEntry:
        async with self._acquire() as conn:
            row = await conn.fetchrow('''
                INSERT INTO index_entry (page_id, lemma_id, rank)
                VALUES ($1, $2, $3)
                RETURNING *
            ''', entry.page_id, entry.lemma_id, entry.rank)
            return _index_entry(row)

    async def find_index_by_page(self, page_id: int) -> List[IndexEntry]:
        async with self._acquire() as conn:
            rows = await conn.fetch('SELECT * FROM index_entry WHERE page_id = $1', page_id)
            return [_index_entry(row) for row in rows]

    async def find_index_by_lemma(self, lemma_id: int) -> List[IndexEntry]:
        async with self._acquire() as conn:
            rows = await conn.fetch('SELECT * FROM index_entry WHERE lemma_id = $1', lemma_id)
            return [_index_entry(row) for row in rows]

    async def delete_index_entries(self, entry_ids: Iterable[int]) -> None:
        ids = list(entry_ids)
        if not ids:
            return
        async with self._acquire() as conn:
            await conn.execute('DELETE FROM index_entry WHERE id = ANY($1::int[])', ids)


def _site(row) -> Site:
    return Site(
        id=row["id"],
        url=row["url"],
        name=row["name"],
        status=SiteStatus(row["status"]),
        status_time=row["status_time"],
        last_error=row["last_error"],
    )


def _page(row) -> Page:
    return Page(
        id=row["id"],
        site_id=row["site_id"],
        path=row["path"],
        code=row["code"],
        content=row["content"],
    )


def _lemma(row) -> Lemma:
    return Lemma(
        id=row["id"],
        site_id=row["site_id"],
        lemma=row["lemma"],
        frequency=row["frequency"],
    )


def _index_entry(row) -> IndexEntry:
    return IndexEntry(
        id=row["id"],
        page_id=row["page_id"],
        lemma_id=row["lemma_id"],
        rank=row["rank"],
    )
