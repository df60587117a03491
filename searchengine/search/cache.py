"""
Кэш поисковой выдачи в Redis
"""
import json
import hashlib
import logging
from typing import Optional

from redis.exceptions import RedisError

from ..core.models import SearchItem, SearchResult

logger = logging.getLogger(__name__)

KEY_PREFIX = "search:"


class SearchCache:
    """
    Кэш результатов поиска

    Ключ - хэш параметров запроса, значение - JSON выдачи.
    Сбрасывается целиком при любом изменении индекса.
    Недоступный Redis не ломает поиск: запрос идёт мимо кэша.
    """

    def __init__(self, redis_client, ttl: int = 60):
        self.redis = redis_client
        self.ttl = ttl

    @staticmethod
    def make_key(query: str, site_url: Optional[str], offset: int, limit: int) -> str:
        raw = json.dumps([query, site_url or "", offset, limit], ensure_ascii=False)
        return KEY_PREFIX + hashlib.sha1(raw.encode("utf-8")).hexdigest()

    async def get(self, key: str) -> Optional[SearchResult]:
        try:
            data = await self.redis.get(key)
        except RedisError as e:
            logger.warning(f"[Cache] Redis get failed: {e}")
            return None

        if not data:
            return None
        if isinstance(data, bytes):
            data = data.decode("utf-8")

        payload = json.loads(data)
        return SearchResult(
            query=payload["query"],
            count=payload["count"],
            items=[SearchItem(**item) for item in payload["items"]],
        )

    async def set(self, key: str, result: SearchResult) -> None:
        payload = {
            "query": result.query,
            "count": result.count,
            "items": [item.__dict__ for item in result.items],
        }
        try:
            await self.redis.set(key, json.dumps(payload, ensure_ascii=False), ex=self.ttl)
        except RedisError as e:
            logger.warning(f"[Cache] Redis set failed: {e}")

    async def invalidate(self) -> None:
        """Сбросить всю закэшированную выдачу"""
        try:
            keys = await self.redis.keys(f"{KEY_PREFIX}*")
            if keys:
                await self.redis.delete(*keys)
                logger.info(f"[Cache] Invalidated {len(keys)} search results")
        except RedisError as e:
            logger.warning(f"[Cache] Redis invalidate failed: {e}")

    async def close(self) -> None:
        await self.redis.close()
