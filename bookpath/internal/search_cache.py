"""
Read-through cache for complete search results.

The cache is advisory. Every backend turns its own failures into a miss on
read and a no-op on write, so the search pipeline never has to care whether
caching works. The backend is picked once at start-up by `create_search_cache`.
"""

import json
import time
from typing import Any, Awaitable, Protocol

from pydantic import BaseModel, ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from bookpath.internal.cache_monitoring import CacheMetrics, cache_metrics
from bookpath.internal.env_settings import CacheSettings
from bookpath.internal.errors import CacheUnavailable
from bookpath.internal.models import SearchQuery, SearchResult
from bookpath.util.log import logger

DEFAULT_TTL = 60 * 60  # 1 hour


def search_cache_key(query: SearchQuery) -> str:
    """
    Stable key over every query field. Title and author are case folded since
    providers match them case-insensitively.
    """
    fields = query.model_dump(mode="json")
    for name in ("title", "author"):
        if fields[name] is not None:
            fields[name] = " ".join(fields[name].casefold().split())
    return "search:" + json.dumps(fields, sort_keys=True, separators=(",", ":"))


class SearchCache(Protocol):
    metrics: CacheMetrics

    @property
    def backend(self) -> str: ...

    async def get(self, key: str) -> SearchResult | None: ...

    async def set(self, key: str, value: SearchResult, ttl: int = DEFAULT_TTL) -> bool: ...

    async def clear(self) -> int: ...

    async def close(self) -> None: ...


def _decode(key: str, raw: str) -> SearchResult | None:
    try:
        return SearchResult.model_validate_json(raw)
    except ValidationError as e:
        logger.warning("Discarding unreadable cache entry", key=key, error=str(e))
        return None


class CacheResult[T](BaseModel, frozen=True):
    value: T
    expires_at: float


class MemorySearchCache:
    """Per-process cache. Entries are stored serialized so hits are fresh copies."""

    backend = "memory"

    def __init__(self, metrics: CacheMetrics | None = None):
        self.metrics = metrics if metrics is not None else cache_metrics
        self._entries: dict[str, CacheResult[str]] = {}

    async def get(self, key: str) -> SearchResult | None:
        entry = self._entries.get(key)
        if entry is None or entry.expires_at <= time.time():
            self.metrics.record_miss()
            return None
        result = _decode(key, entry.value)
        if result is None:
            self.metrics.record_miss()
        else:
            self.metrics.record_hit()
        return result

    async def set(self, key: str, value: SearchResult, ttl: int = DEFAULT_TTL) -> bool:
        now = time.time()
        self._entries[key] = CacheResult(
            value=value.model_dump_json(),
            expires_at=now + ttl,
        )
        self.metrics.record_set()

        # clean up cache slightly
        for k in list(self._entries.keys()):
            if self._entries[k].expires_at <= now:
                try:
                    del self._entries[k]
                except KeyError:  # ignore in race conditions
                    pass
        return True

    async def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    async def close(self) -> None:
        pass


class RedisSearchCache:
    """Redis backed cache. Redis errors degrade single calls, not the process."""

    backend = "redis"

    def __init__(
        self,
        client: Redis,
        prefix: str = "bookpath-cache:",
        metrics: CacheMetrics | None = None,
    ):
        self.client = client
        self.prefix = prefix
        self.metrics = metrics if metrics is not None else cache_metrics

    def _key(self, key: str) -> str:
        return key if key.startswith(self.prefix) else f"{self.prefix}{key}"

    async def _call[T](self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except (RedisError, OSError) as e:
            raise CacheUnavailable(f"Redis {operation} failed: {e}") from e

    async def get(self, key: str) -> SearchResult | None:
        try:
            raw: Any = await self._call("get", self.client.get(self._key(key)))
        except CacheUnavailable as e:
            self.metrics.record_error()
            logger.error("Cache get error", key=key, error=str(e))
            return None

        if raw is None:
            self.metrics.record_miss()
            return None
        if isinstance(raw, bytes):
            raw = raw.decode()
        result = _decode(key, raw)
        if result is None:
            self.metrics.record_miss()
        else:
            self.metrics.record_hit()
        return result

    async def set(self, key: str, value: SearchResult, ttl: int = DEFAULT_TTL) -> bool:
        try:
            await self._call(
                "set",
                self.client.set(self._key(key), value.model_dump_json(), ex=ttl),
            )
        except CacheUnavailable as e:
            self.metrics.record_error()
            logger.error("Cache set error", key=key, error=str(e))
            return False
        self.metrics.record_set()
        return True

    async def clear(self) -> int:
        """Deletes every key under the configured prefix."""
        try:
            keys = [k async for k in self.client.scan_iter(match=f"{self.prefix}*")]
            if keys:
                await self._call("delete", self.client.delete(*keys))
        except (CacheUnavailable, RedisError, OSError) as e:
            self.metrics.record_error()
            logger.error("Cache flush error", error=str(e))
            return 0
        logger.info("Flushed cache keys", count=len(keys), prefix=self.prefix)
        return len(keys)

    async def close(self) -> None:
        try:
            await self.client.aclose()
        except (RedisError, OSError) as e:
            logger.debug("Error while closing redis connection", error=str(e))


class DisabledSearchCache:
    """Stand-in when no cache backend is usable. Every lookup is a miss."""

    backend = "disabled"

    def __init__(self, metrics: CacheMetrics | None = None):
        self.metrics = metrics if metrics is not None else cache_metrics

    async def get(self, key: str) -> SearchResult | None:
        self.metrics.record_miss()
        return None

    async def set(self, key: str, value: SearchResult, ttl: int = DEFAULT_TTL) -> bool:
        return False

    async def clear(self) -> int:
        return 0

    async def close(self) -> None:
        pass


async def create_search_cache(
    settings: CacheSettings,
    metrics: CacheMetrics | None = None,
) -> SearchCache:
    if settings.backend == "none":
        logger.info("Search cache disabled by configuration")
        return DisabledSearchCache(metrics)
    if settings.backend == "memory":
        return MemorySearchCache(metrics)

    client = Redis.from_url(settings.redis_url, decode_responses=True)
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        logger.error(
            "Could not connect to Redis. Caching will be disabled.",
            redis_url=settings.redis_url,
            error=str(e),
        )
        try:
            await client.aclose()
        except (RedisError, OSError):
            pass
        return DisabledSearchCache(metrics)

    logger.info("Redis cache connection established", redis_url=settings.redis_url)
    return RedisSearchCache(client, prefix=settings.prefix, metrics=metrics)
