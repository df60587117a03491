"""
Модели данных поискового движка
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any
from enum import Enum


class SiteStatus(Enum):
    INDEXING = "INDEXING"
    INDEXED = "INDEXED"
    FAILED = "FAILED"


@dataclass
class Site:
    """Сайт (корень обхода)"""
    url: str
    name: str
    status: SiteStatus = SiteStatus.INDEXING
    status_time: datetime = field(default_factory=datetime.now)
    last_error: Optional[str] = None
    id: Optional[int] = None


@dataclass
class Page:
    """Загруженная страница сайта"""
    site_id: int
    path: str  # относительно url сайта, всегда начинается с "/"
    code: int
    content: str
    id: Optional[int] = None


@dataclass
class Lemma:
    """Лемма сайта"""
    site_id: int
    lemma: str
    frequency: int = 1  # число страниц сайта, на которых встречается лемма
    id: Optional[int] = None


@dataclass
class IndexEntry:
    """Связь страницы и леммы"""
    page_id: int
    lemma_id: int
    rank: float  # сколько раз лемма встретилась на странице
    id: Optional[int] = None


@dataclass
class SearchItem:
    """Элемент поисковой выдачи"""
    site: str
    site_name: str
    uri: str
    title: str
    snippet: str
    relevance: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "site": self.site,
            "siteName": self.site_name,
            "uri": self.uri,
            "title": self.title,
            "snippet": self.snippet,
            "relevance": self.relevance,
        }


@dataclass
class SearchResult:
    """Результат поиска"""
    query: str
    count: int
    items: List[SearchItem] = field(default_factory=list)
    took_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "result": True,
            "count": self.count,
            "data": [item.to_dict() for item in self.items],
        }


@dataclass
class SiteStatistics:
    """Статистика по одному сайту"""
    url: str
    name: str
    status: str
    status_time: int  # epoch seconds
    error: Optional[str]
    pages: int
    lemmas: int


@dataclass
class TotalStatistics:
    """Общая статистика"""
    sites: int
    pages: int
    lemmas: int
    indexing: bool


@dataclass
class Statistics:
    total: TotalStatistics
    detailed: List[SiteStatistics] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": {
                "sites": self.total.sites,
                "pages": self.total.pages,
                "lemmas": self.total.lemmas,
                "indexing": self.total.indexing,
            },
            "detailed": [
                {
                    "url": item.url,
                    "name": item.name,
                    "status": item.status,
                    "statusTime": item.status_time,
                    "error": item.error,
                    "pages": item.pages,
                    "lemmas": item.lemmas,
                }
                for item in self.detailed
            ],
        }
