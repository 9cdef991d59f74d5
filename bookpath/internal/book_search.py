"""
Book search pipeline.

cache lookup -> provider fan-out -> normalize -> deduplicate/merge ->
filter -> sort -> paginate -> affiliate links -> cache write
"""

from typing import Sequence

from aiohttp import ClientSession
from fastapi import Request

from bookpath.internal.affiliate import AmazonLinkBuilder, LinkBuilder, add_affiliate_links
from bookpath.internal.env_settings import Settings
from bookpath.internal.errors import SearchValidationError
from bookpath.internal.listing import PAGE_SIZE, apply_filters, paginate, sort_books
from bookpath.internal.merge import SourcePriority, deduplicate
from bookpath.internal.models import CanonicalBook, ProviderOutcome, SearchQuery, SearchResult
from bookpath.internal.search_cache import DEFAULT_TTL, SearchCache, search_cache_key
from bookpath.internal.sources.abstract import AbstractProvider
from bookpath.internal.sources.providers import create_providers
from bookpath.internal.sources.unified_search import DEFAULT_PROVIDER_TIMEOUT, fan_out
from bookpath.util.log import logger


def _error_entries(outcomes: Sequence[ProviderOutcome]) -> list[str]:
    return [f"{o.provider}: {o.error}" for o in outcomes if o.error is not None]


class BookSearchService:
    def __init__(
        self,
        providers: Sequence[AbstractProvider],
        cache: SearchCache,
        link_builder: LinkBuilder,
        source_priority: Sequence[str] = (),
        provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT,
        cache_ttl: int = DEFAULT_TTL,
        page_size: int = PAGE_SIZE,
    ):
        self.providers = list(providers)
        self.cache = cache
        self.link_builder = link_builder
        self.priority = SourcePriority(
            source_priority or [p.name for p in self.providers]
        )
        self.provider_timeout = provider_timeout
        self.cache_ttl = cache_ttl
        self.page_size = page_size

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client_session: ClientSession,
        cache: SearchCache,
    ) -> "BookSearchService":
        return cls(
            providers=create_providers(client_session, settings.providers),
            cache=cache,
            link_builder=AmazonLinkBuilder.from_settings(settings.affiliate),
            source_priority=settings.providers.source_priority,
            provider_timeout=settings.providers.timeout_seconds,
            cache_ttl=settings.cache.ttl_seconds,
        )

    async def search(
        self,
        query: SearchQuery,
        requester: str | None = None,
    ) -> SearchResult:
        """
        Never raises for provider, cache or enrichment failures. Only an
        under-specified query is rejected, before any provider is called.
        """
        if not query.has_search_term:
            raise SearchValidationError(
                "At least one search parameter (title, author, category or subject) must be provided"
            )

        log = logger.bind(requester=requester, query=query.model_dump(exclude_none=True))
        key = search_cache_key(query)

        cached = await self.cache.get(key)
        if cached is not None:
            log.debug("Using cached search result")
            return cached

        outcomes = await fan_out(query, self.providers, timeout=self.provider_timeout)
        result = await self._build_result(query, outcomes)

        if any(o.ok for o in outcomes):
            await self.cache.set(key, result, self.cache_ttl)
        else:
            log.warning("No provider succeeded, result not cached", errors=result.errors)

        log.info(
            "Book search complete",
            result_count=len(result.items),
            total_results=result.pagination.total_results,
            total_pages=result.pagination.total_pages,
            sources_used=sum(result.source_status.values()),
        )
        return result

    async def _build_result(
        self,
        query: SearchQuery,
        outcomes: Sequence[ProviderOutcome],
    ) -> SearchResult:
        books: list[CanonicalBook] = [
            book for o in outcomes if o.books is not None for book in o.books
        ]
        merged = deduplicate(books, self.priority)
        filtered = apply_filters(merged, condition=query.condition, category=query.category)
        ordered = sort_books(filtered, query.sort)
        page_items, pagination = paginate(ordered, query.page, self.page_size)
        page_items = await add_affiliate_links(page_items, self.link_builder)

        errors = _error_entries(outcomes)
        if not outcomes:
            errors.append("No provider can serve this query")

        return SearchResult(
            items=page_items,
            pagination=pagination,
            source_status={o.provider: o.ok for o in outcomes},
            errors=errors,
        )


def get_search_service(request: Request) -> BookSearchService:
    return request.app.state.search_service
