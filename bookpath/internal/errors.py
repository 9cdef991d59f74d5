from typing import Literal, final

ProviderErrorKind = Literal["timeout", "transport_failure", "upstream_rejected"]


@final
class ProviderError(Exception):
    """A single provider failed. Never propagated past the fan-out."""

    def __init__(
        self,
        provider: str,
        kind: ProviderErrorKind,
        message: str,
        status: int | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.kind = kind
        self.message = message
        self.status = status

    def __str__(self) -> str:
        return self.message


class SearchValidationError(ValueError):
    """The query is malformed or under-specified. Raised before any fan-out."""


class EnrichmentError(Exception):
    pass


class CacheUnavailable(Exception):
    pass
