"""
Fan-out coordinator.
Queries every applicable provider in parallel and collects one outcome per
provider. A failing or slow provider only removes its own records.
"""

import asyncio
from typing import Sequence

from bookpath.internal.errors import ProviderError
from bookpath.internal.models import ProviderOutcome, SearchQuery
from bookpath.internal.normalize import normalize_records
from bookpath.internal.sources.abstract import AbstractProvider
from bookpath.util.log import logger

DEFAULT_PROVIDER_TIMEOUT = 10.0


async def _settle(
    provider: AbstractProvider,
    query: SearchQuery,
    timeout: float,
) -> ProviderOutcome:
    try:
        # wait_for cancels the provider call on expiry, which releases its connection
        records = await asyncio.wait_for(provider.fetch(query), timeout)
        books = normalize_records(records)
    except asyncio.TimeoutError:
        error = ProviderError(
            provider.name,
            "timeout",
            f"{provider.display_name} did not respond within {timeout:g}s",
        )
    except ProviderError as e:
        error = e
    except Exception as e:
        logger.error(
            "Unexpected exception from provider",
            provider=provider.name,
            error=str(e),
            exc_info=e,
        )
        error = ProviderError(provider.name, "transport_failure", str(e) or repr(e))
    else:
        return ProviderOutcome.success(provider.name, books)

    logger.warning(
        "Provider search failed",
        provider=provider.name,
        kind=error.kind,
        status=error.status,
        error=error.message,
    )
    return ProviderOutcome.failure(provider.name, error)


async def fan_out(
    query: SearchQuery,
    providers: Sequence[AbstractProvider],
    timeout: float = DEFAULT_PROVIDER_TIMEOUT,
) -> list[ProviderOutcome]:
    """
    Returns one outcome per provider that accepts the query, in registration
    order. Waits for every call to settle and never raises for provider failures.
    """
    applicable = [p for p in providers if p.can_serve(query)]
    declined = [p.name for p in providers if p not in applicable]

    logger.info(
        "Starting provider fan-out",
        providers=[p.name for p in applicable],
        declined=declined,
        timeout=timeout,
    )

    outcomes = await asyncio.gather(
        *(_settle(provider, query, timeout) for provider in applicable)
    )

    logger.info(
        "Provider fan-out complete",
        succeeded=[o.provider for o in outcomes if o.ok],
        failed=[o.provider for o in outcomes if not o.ok],
        book_count=sum(len(o.books) for o in outcomes if o.books is not None),
    )
    return list(outcomes)
