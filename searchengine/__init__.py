"""
Поисковый движок по сайтам: обход, индекс лемм, ранжированный поиск
"""
__version__ = "1.0.0"
