"""
Storage модуль - хранилища сайтов, страниц, лемм и индекса
"""
from .memory import MemoryStorage
from .postgres import PostgresStorage

__all__ = [
    "MemoryStorage",
    "PostgresStorage",
]
