"""Cache metrics endpoints."""

from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from bookpath.internal.book_search import BookSearchService, get_search_service

router = APIRouter(prefix="/health", tags=["Health"])


class CacheHealthResponse(BaseModel):
    """Cache backend and metrics status."""

    backend: str
    hits: int
    misses: int
    sets: int
    errors: int
    hit_rate: float
    last_reset: Optional[datetime] = None


class CacheFlushResponse(BaseModel):
    flushed_keys: int


@router.get("/cache", response_model=CacheHealthResponse)
async def cache_health(
    service: Annotated[BookSearchService, Depends(get_search_service)],
):
    """
    Get cache health metrics.

    Returns the active backend and its hit/miss counters.
    """
    return CacheHealthResponse(
        backend=service.cache.backend,
        **service.cache.metrics.as_dict(),
    )


@router.delete("/cache", response_model=CacheFlushResponse)
async def flush_cache(
    service: Annotated[BookSearchService, Depends(get_search_service)],
):
    service.cache.metrics.log_summary()
    flushed = await service.cache.clear()
    service.cache.metrics.reset()
    return CacheFlushResponse(flushed_keys=flushed)
