"""
Search модуль - леммы, индексатор, поисковый движок
"""
from .morphology import RussianMorphology
from .lemmas import LemmaExtractor
from .indexer import PageIndexer
from .engine import SearchEngine
from .cache import SearchCache
from .statistics import StatisticsService
from .snippet import extract_title, make_snippet

__all__ = [
    "RussianMorphology",
    "LemmaExtractor",
    "PageIndexer",
    "SearchEngine",
    "SearchCache",
    "StatisticsService",
    "extract_title",
    "make_snippet",
]
