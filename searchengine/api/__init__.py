"""
API модуль - HTTP интерфейс движка
"""
from .main import create_app, build_services, Services

__all__ = [
    "create_app",
    "build_services",
    "Services",
]
