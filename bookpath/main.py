from contextlib import asynccontextmanager

from fastapi import FastAPI

from bookpath.internal.book_search import BookSearchService
from bookpath.internal.env_settings import Settings
from bookpath.internal.search_cache import create_search_cache
from bookpath.routers.api import router as api_router
from bookpath.util.connection import create_client_session
from bookpath.util.log import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()
    async with create_client_session() as client_session:
        cache = await create_search_cache(settings.cache)
        app.state.search_service = BookSearchService.from_settings(
            settings, client_session, cache
        )
        logger.info(
            "Search service ready",
            providers=settings.providers.enabled,
            cache_backend=cache.backend,
        )
        try:
            yield
        finally:
            await cache.close()


app = FastAPI(
    title="BookPath Search",
    version=Settings().app.version,
    lifespan=lifespan,
)
app.include_router(api_router)
