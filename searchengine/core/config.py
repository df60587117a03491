"""
Конфигурация сервиса
"""
from dataclasses import dataclass, field
from typing import Optional, List
from urllib.parse import quote
import json
import os


@dataclass
class DatabaseConfig:
    """Настройки PostgreSQL"""
    host: str = "localhost"
    port: int = 5432
    database: str = "search_engine"
    user: str = "postgres"
    password: str = ""
    pool_size: int = 10

    @property
    def url(self) -> str:
        user = quote(self.user, safe="")
        password = quote(self.password, safe="")
        return f"postgresql://{user}:{password}@{self.host}:{self.port}/{self.database}"


@dataclass
class RedisConfig:
    """Настройки Redis (кэш поисковой выдачи)"""
    url: str = ""

    # TTL для кэша (секунды)
    search_cache_ttl: int = 60

    @property
    def enabled(self) -> bool:
        return bool(self.url)


@dataclass
class SiteConfig:
    """Сайт из конфигурации"""
    url: str
    name: str


@dataclass
class IndexingConfig:
    """Настройки обхода сайтов"""
    sites: List[SiteConfig] = field(default_factory=list)
    user_agent: str = "HeliontSearchBot"
    referrer: str = "http://www.google.com"

    # Таймаут загрузки страницы (секунды)
    fetch_timeout: float = 5.0

    # Пауза перед каждым запросом: случайная в [delay_min, delay_max)
    delay_min: float = 0.5
    delay_max: float = 5.0

    # Воркеров на один сайт
    workers_per_site: int = field(default_factory=lambda: os.cpu_count() or 4)

    def find_site(self, url: str) -> Optional[SiteConfig]:
        """Сайт из конфигурации, внутри которого лежит url"""
        for site in self.sites:
            if url.startswith(site.url):
                return site
        return None


@dataclass
class SearchConfig:
    """Настройки поиска"""
    # Результаты
    default_limit: int = 20
    max_limit: int = 100

    # Леммы, встречающиеся на такой доле страниц и чаще, не участвуют в поиске
    frequency_threshold: float = 0.8

    # Сниппет
    snippet_source_length: int = 1000
    snippet_length: int = 200


@dataclass
class ApiConfig:
    """Настройки API"""
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS
    cors_origins: list = field(default_factory=lambda: ["*"])


@dataclass
class Config:
    """Главная конфигурация"""
    log_level: str = "INFO"

    # memory | postgres
    storage_backend: str = "memory"

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    redis: RedisConfig = field(default_factory=RedisConfig)
    indexing: IndexingConfig = field(default_factory=IndexingConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    api: ApiConfig = field(default_factory=ApiConfig)

    @classmethod
    def from_env(cls) -> "Config":
        """Загрузить конфигурацию из переменных окружения"""
        indexing = IndexingConfig(
            sites=load_sites(
                os.getenv("INDEXING_SITES", ""),
                os.getenv("INDEXING_SITES_FILE", ""),
            ),
            user_agent=os.getenv("INDEXING_USER_AGENT", "HeliontSearchBot"),
            referrer=os.getenv("INDEXING_REFERRER", "http://www.google.com"),
            fetch_timeout=float(os.getenv("INDEXING_FETCH_TIMEOUT", "5")),
            delay_min=float(os.getenv("INDEXING_DELAY_MIN", "0.5")),
            delay_max=float(os.getenv("INDEXING_DELAY_MAX", "5")),
        )
        if os.getenv("INDEXING_WORKERS"):
            indexing.workers_per_site = int(os.getenv("INDEXING_WORKERS"))

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            storage_backend=os.getenv("STORAGE_BACKEND", "memory").lower(),

            database=DatabaseConfig(
                host=os.getenv("DB_HOST", "localhost"),
                port=int(os.getenv("DB_PORT", "5432")),
                database=os.getenv("DB_NAME", "search_engine"),
                user=os.getenv("DB_USER", "postgres"),
                password=os.getenv("DB_PASSWORD", ""),
            ),

            redis=RedisConfig(
                url=os.getenv("REDIS_URL", ""),
                search_cache_ttl=int(os.getenv("SEARCH_CACHE_TTL", "60")),
            ),

            indexing=indexing,

            api=ApiConfig(
                host=os.getenv("API_HOST", "0.0.0.0"),
                port=int(os.getenv("API_PORT", "8080")),
            ),
        )


def load_sites(raw: str = "", path: str = "") -> List[SiteConfig]:
    """
    Список сайтов из JSON: [{"url": ..., "name": ...}, ...]

    Берётся строка raw, а если она пустая - содержимое файла path.
    """
    if not raw and path:
        with open(path, encoding="utf-8") as f:
            raw = f.read()
    if not raw:
        return []

    data = json.loads(raw)
    if isinstance(data, dict):
        data = data.get("sites", [])

    return [
        SiteConfig(url=item["url"], name=item.get("name") or item["url"])
        for item in data
    ]
