"""
FastAPI приложение - индексация сайтов, статистика, поиск
"""
from fastapi import FastAPI, Query, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Optional
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pydantic import BaseModel
import redis.asyncio as redis
import logging

from ..core.config import Config
from ..core.errors import SearchEngineError
from ..core.interfaces import IStorage
from ..storage import MemoryStorage, PostgresStorage
from ..search import (
    RussianMorphology, LemmaExtractor, PageIndexer,
    SearchEngine, SearchCache, StatisticsService,
)
from ..crawler import PageFetcher, IndexingManager

logger = logging.getLogger(__name__)

EMPTY_QUERY = "Задан пустой поисковый запрос"
BAD_PARAMETERS = "Некорректные параметры запроса"
INTERNAL_ERROR = "Внутренняя ошибка сервера"


# ============ MODELS ============

class ResultResponse(BaseModel):
    result: bool = True


class ErrorResponse(BaseModel):
    result: bool = False
    error: str


@dataclass
class Services:
    """Компоненты движка, общие для всех запросов"""
    storage: IStorage
    manager: IndexingManager
    search_engine: SearchEngine
    statistics: StatisticsService
    fetcher: PageFetcher = None
    cache: SearchCache = None

    async def close(self):
        await self.manager.shutdown()
        if self.fetcher:
            await self.fetcher.close()
        if self.cache:
            await self.cache.close()
        await self.storage.close()


async def build_services(config: Config) -> Services:
    """Инициализация компонентов по конфигурации"""
    if config.storage_backend == "postgres":
        storage = PostgresStorage(config.database)
        await storage.connect()
    else:
        storage = MemoryStorage()

    # Подключение к Redis (кэш выдачи)
    cache = None
    if config.redis.enabled:
        redis_client = await redis.from_url(
            config.redis.url,
            encoding="utf-8",
            decode_responses=False
        )
        cache = SearchCache(redis_client, config.redis.search_cache_ttl)

    extractor = LemmaExtractor(RussianMorphology.shared())
    indexer = PageIndexer(storage, extractor)
    fetcher = PageFetcher(
        config.indexing.user_agent,
        config.indexing.referrer,
        config.indexing.fetch_timeout
    )
    manager = IndexingManager(config.indexing, storage, fetcher, indexer, cache)

    return Services(
        storage=storage,
        manager=manager,
        search_engine=SearchEngine(storage, extractor, config.search, cache),
        statistics=StatisticsService(storage, lambda: manager.is_running),
        fetcher=fetcher,
        cache=cache,
    )


def create_app(config: Config = None, services: Services = None) -> FastAPI:
    """Создание приложения; готовые services подставляются в тестах"""
    config = config or Config.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Инициализация и очистка ресурсов"""
        app.state.services = services or await build_services(config)
        logger.info(
            f"Search engine initialized: {len(config.indexing.sites)} sites, "
            f"storage={config.storage_backend}"
        )

        yield

        await app.state.services.close()
        logger.info("Connections closed")

    app = FastAPI(
        title="Search Engine API",
        description="API поискового движка по сайтам",
        version="1.0.0",
        lifespan=lifespan
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SearchEngineError)
    async def engine_error_handler(request: Request, exc: SearchEngineError):
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=exc.message).model_dump()
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        fields = ", ".join(
            str(error["loc"][-1]) for error in exc.errors() if error.get("loc")
        )
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                error=f"{BAD_PARAMETERS}: {fields}" if fields else BAD_PARAMETERS
            ).model_dump()
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error=INTERNAL_ERROR).model_dump()
        )

    register_routes(app, config)
    return app


def get_services(request: Request) -> Services:
    return request.app.state.services


def register_routes(app: FastAPI, config: Config):

    # ============ STATISTICS ============

    @app.get("/api/statistics")
    async def statistics(services: Services = Depends(get_services)):
        """Статистика по сайтам и индексу"""
        data = await services.statistics.get_statistics()
        return {"result": True, "statistics": data.to_dict()}

    # ============ INDEXING ============

    @app.get("/api/startIndexing", response_model=ResultResponse)
    async def start_indexing(services: Services = Depends(get_services)):
        """Запуск полной индексации"""
        await services.manager.start_indexing()
        return ResultResponse()

    @app.get("/api/stopIndexing", response_model=ResultResponse)
    async def stop_indexing(services: Services = Depends(get_services)):
        """Остановка индексации"""
        await services.manager.stop_indexing()
        return ResultResponse()

    @app.post("/api/indexPage", response_model=ResultResponse)
    async def index_page(
        url: str = Query(..., description="Адрес страницы"),
        services: Services = Depends(get_services)
    ):
        """Добавление или обновление одной страницы"""
        await services.manager.index_page(url.strip())
        return ResultResponse()

    # ============ SEARCH ============

    @app.get("/api/search")
    async def search(
        query: Optional[str] = Query(None, description="Поисковый запрос"),
        site: Optional[str] = Query(None, description="Сайт для поиска"),
        offset: int = Query(0, ge=0),
        limit: int = Query(config.search.default_limit, ge=1, le=config.search.max_limit),
        services: Services = Depends(get_services)
    ):
        """Поиск по проиндексированным сайтам"""
        if not query or not query.strip():
            return JSONResponse(
                status_code=400,
                content=ErrorResponse(error=EMPTY_QUERY).model_dump()
            )

        result = await services.search_engine.search(query, site, offset, limit)
        return result.to_dict()

    # ============ HEALTH CHECK ============

    @app.get("/health")
    async def health(services: Services = Depends(get_services)):
        """Health check"""
        return {"status": "healthy", "indexing": services.manager.is_running}


def run():
    """Запуск сервера: python -m searchengine.api.main"""
    import uvicorn

    config = Config.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    uvicorn.run(create_app(config), host=config.api.host, port=config.api.port)


if __name__ == "__main__":
    run()
