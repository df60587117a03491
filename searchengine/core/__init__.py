"""
Core модуль - модели, интерфейсы, ошибки, конфигурация
"""
from .models import (
    Site,
    SiteStatus,
    Page,
    Lemma,
    IndexEntry,
    SearchItem,
    SearchResult,
    Statistics,
    SiteStatistics,
    TotalStatistics,
)

from .interfaces import (
    FetchedPage,
    IStorage,
    IMorphology,
    IPageFetcher,
)

from .errors import (
    SearchEngineError,
    AlreadyRunningError,
    NotRunningError,
    OutOfScopeError,
    NotIndexedError,
    NoIndexedSitesError,
    NoLemmasError,
    PageFetchError,
    StorageError,
    LemmatizerError,
    WrongCharacterError,
)

from .config import Config, SiteConfig

__all__ = [
    # Models
    "Site",
    "SiteStatus",
    "Page",
    "Lemma",
    "IndexEntry",
    "SearchItem",
    "SearchResult",
    "Statistics",
    "SiteStatistics",
    "TotalStatistics",

    # Interfaces
    "FetchedPage",
    "IStorage",
    "IMorphology",
    "IPageFetcher",

    # Errors
    "SearchEngineError",
    "AlreadyRunningError",
    "NotRunningError",
    "OutOfScopeError",
    "NotIndexedError",
    "NoIndexedSitesError",
    "NoLemmasError",
    "PageFetchError",
    "StorageError",
    "LemmatizerError",
    "WrongCharacterError",

    # Config
    "Config",
    "SiteConfig",
]
