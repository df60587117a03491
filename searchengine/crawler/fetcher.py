"""
Загрузка и разбор HTML страниц
"""
import asyncio
import logging
from typing import List, Optional
from urllib.parse import urljoin, urldefrag

import aiohttp
from bs4 import BeautifulSoup

from ..core.errors import PageFetchError
from ..core.interfaces import FetchedPage, IPageFetcher

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPES = {"text/html", "application/xhtml+xml"}


class PageFetcher(IPageFetcher):
    """Загрузчик страниц на aiohttp с общей сессией"""

    def __init__(self, user_agent: str, referrer: str, timeout: float = 5.0):
        self.user_agent = user_agent
        self.referrer = referrer
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "User-Agent": self.user_agent,
                    "Referer": self.referrer,
                    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
                },
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def fetch(self, url: str) -> FetchedPage:
        """Загрузка страницы (таймаут - self.timeout секунд)"""
        session = self._get_session()
        try:
            async with session.get(url) as response:
                if 400 <= response.status < 600:
                    return FetchedPage(url=str(response.url), code=response.status, html="")

                content_type = response.content_type
                if content_type and content_type not in HTML_CONTENT_TYPES:
                    raise PageFetchError(f"Неподдерживаемый тип содержимого {content_type}: {url}")

                html = await response.text(errors="replace")
                return FetchedPage(url=str(response.url), code=response.status, html=html)

        except asyncio.TimeoutError:
            raise PageFetchError(f"Превышено время ожидания ответа: {url}")
        except aiohttp.ClientError as e:
            raise PageFetchError(f"Ошибка загрузки {url}: {e}")

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()


def page_text(html: str) -> str:
    """Видимый текст страницы (без скриптов и стилей)"""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup(["script", "style", "noscript"]):
        element.decompose()
    return " ".join(soup.get_text(" ").split())


def extract_links(html: str, base_url: str) -> List[str]:
    """Абсолютные ссылки a[href] без якорей, в порядке появления"""
    soup = BeautifulSoup(html, "html.parser")

    links = []
    for element in soup.find_all("a", href=True):
        href = element["href"]
        if isinstance(href, list):
            href = href[0] if href else ""
        href = href.strip()
        if not href or href.startswith(("javascript:", "mailto:", "tel:")):
            continue

        absolute, _ = urldefrag(urljoin(base_url, href))
        if absolute and absolute not in links:
            links.append(absolute)
    return links


def relative_path(url: str, base_url: str) -> str:
    """Путь страницы относительно url сайта, всегда с ведущим "/" """
    if url.startswith(base_url):
        relative = url[len(base_url):]
        if not relative.startswith("/"):
            relative = "/" + relative
        return relative
    return url
