"""
Counters for the search result cache, exposed on /api/health/cache.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from bookpath.util.log import logger


@dataclass
class CacheMetrics:
    """
    A backend error is counted in `errors` only. The lookup it broke is
    not also counted as a miss.
    """

    hits: int = 0
    misses: int = 0
    sets: int = 0
    errors: int = 0
    last_reset: Optional[datetime] = None

    @property
    def lookups(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Percentage of lookups answered from the cache, 0 without lookups."""
        if not self.lookups:
            return 0.0
        return round(self.hits / self.lookups * 100, 1)

    def record_hit(self) -> None:
        self.hits += 1

    def record_miss(self) -> None:
        self.misses += 1

    def record_set(self) -> None:
        self.sets += 1

    def record_error(self) -> None:
        self.errors += 1

    def as_dict(self) -> dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "errors": self.errors,
            "hit_rate": self.hit_rate,
            "last_reset": self.last_reset,
        }

    def log_summary(self) -> None:
        logger.info("Search cache metrics", lookups=self.lookups, **self.as_dict())

    def reset(self) -> None:
        self.hits = self.misses = self.sets = self.errors = 0
        self.last_reset = datetime.now()


# Shared by caches created without their own metrics
cache_metrics = CacheMetrics()
