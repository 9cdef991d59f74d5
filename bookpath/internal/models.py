from dataclasses import dataclass
from typing import Any, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from bookpath.internal.errors import ProviderError, SearchValidationError

Condition = Literal["new", "used", "unknown"]
SortOrder = Literal["relevance", "newest", "author_az"]


class ApiModel(BaseModel):
    """Snake case in Python, camel case on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RawRecord(BaseModel):
    """
    A provider record after wire parsing but before normalization.
    Field names are shared across providers, shapes are not yet cleaned up.
    """

    source: str
    title: Optional[str] = None
    authors: list[str] = []
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    published: Optional[str | int] = None
    subjects: list[str] = []
    genres: list[str] = []
    isbns: list[str] = []
    condition: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None


class CanonicalBook(ApiModel):
    identity_hint: Optional[str] = None
    title: str = Field(min_length=1)
    authors: list[str] = []
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    first_publish_year: Optional[int] = None
    subjects: list[str] = []
    category: Optional[str] = None
    condition: Condition = "unknown"
    price: Optional[float] = None
    currency: Optional[str] = None
    source_id: str
    affiliate_url: Optional[str] = None

    field_sources: dict[str, str] = Field(default_factory=dict, exclude=True)
    """Which source each merged field was taken from. Empty until merged."""


class SearchQuery(ApiModel, frozen=True):
    title: Optional[str] = None
    author: Optional[str] = None
    category: Optional[str] = None
    subject: Optional[str] = None
    condition: Optional[Condition] = None
    sort: Optional[SortOrder] = None
    page: int = Field(default=1, ge=1)

    @field_validator("title", "author", "category", "subject", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @model_validator(mode="after")
    def _require_search_term(self) -> "SearchQuery":
        if not self.has_search_term:
            raise ValueError(
                "At least one search parameter (title, author, category or subject) must be provided"
            )
        return self

    @property
    def has_search_term(self) -> bool:
        return any((self.title, self.author, self.category, self.subject))

    @classmethod
    def from_params(cls, **params: Any) -> "SearchQuery":
        """Build a query from loosely typed caller input, dropping unset values."""
        try:
            return cls.model_validate(
                {k: v for k, v in params.items() if v is not None and v != ""}
            )
        except ValidationError as e:
            messages = "; ".join(
                (f"{'.'.join(str(x) for x in err['loc'])}: " if err["loc"] else "")
                + err["msg"].removeprefix("Value error, ")
                for err in e.errors()
            )
            raise SearchValidationError(messages) from e


@dataclass(frozen=True)
class ProviderOutcome:
    """Result of one provider call. Exactly one of `books` and `error` is set."""

    provider: str
    books: Optional[list[CanonicalBook]] = None
    error: Optional[ProviderError] = None

    def __post_init__(self):
        if (self.books is None) == (self.error is None):
            raise ValueError("ProviderOutcome needs exactly one of books or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, provider: str, books: list[CanonicalBook]) -> "ProviderOutcome":
        return cls(provider=provider, books=books)

    @classmethod
    def failure(cls, provider: str, error: ProviderError) -> "ProviderOutcome":
        return cls(provider=provider, error=error)


class Pagination(ApiModel):
    current_page: int
    total_pages: int
    total_results: int
    has_next: bool
    has_previous: bool


class SearchResult(ApiModel):
    items: list[CanonicalBook]
    pagination: Pagination
    source_status: dict[str, bool]
    errors: list[str] = []
