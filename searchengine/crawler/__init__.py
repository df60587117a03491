"""
Crawler модуль - загрузка страниц, обход сайтов, управление индексацией
"""
from .fetcher import PageFetcher, page_text, extract_links, relative_path
from .crawler import SiteCrawler
from .manager import IndexingManager

__all__ = [
    "PageFetcher",
    "SiteCrawler",
    "IndexingManager",
    "page_text",
    "extract_links",
    "relative_path",
]
