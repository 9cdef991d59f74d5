import asyncio
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Mapping

import aiohttp
from aiohttp import ClientSession

from bookpath.internal.env_settings import ProviderSettings
from bookpath.internal.errors import ProviderError
from bookpath.internal.models import RawRecord, SearchQuery
from bookpath.util.log import logger


class AbstractProvider(ABC):
    """
    One external book data source.

    `fetch` either returns raw records or raises `ProviderError`. Anything else
    escaping it is treated as a transport failure by the fan-out.
    """

    name: ClassVar[str]
    display_name: ClassVar[str]

    def __init__(self, client_session: ClientSession, settings: ProviderSettings):
        self.client_session = client_session
        self.settings = settings

    def can_serve(self, query: SearchQuery) -> bool:
        """Providers decline queries they have no usable search term for."""
        return True

    @abstractmethod
    async def fetch(self, query: SearchQuery) -> list[RawRecord]: ...

    async def _get_json(self, url: str, params: Mapping[str, str | int]) -> Any:
        try:
            async with self.client_session.get(url, params=params) as response:
                if response.status == 403:
                    raise ProviderError(
                        self.name,
                        "upstream_rejected",
                        f"{self.display_name} API access denied",
                        status=403,
                    )
                if response.status == 429:
                    raise ProviderError(
                        self.name,
                        "upstream_rejected",
                        f"{self.display_name} API rate limit exceeded",
                        status=429,
                    )
                if not response.ok:
                    logger.warning(
                        "Provider API error",
                        provider=self.name,
                        status=response.status,
                        reason=response.reason,
                    )
                    raise ProviderError(
                        self.name,
                        "upstream_rejected",
                        f"{self.display_name} returned HTTP {response.status}",
                        status=response.status,
                    )
                return await response.json()
        except asyncio.TimeoutError as e:
            raise ProviderError(
                self.name, "timeout", f"{self.display_name} request timed out"
            ) from e
        except aiohttp.ClientError as e:
            raise ProviderError(
                self.name,
                "transport_failure",
                f"{self.display_name} request failed: {e}",
            ) from e
