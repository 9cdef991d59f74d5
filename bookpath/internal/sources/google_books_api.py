"""
Google Books API provider.
"""

from typing import Optional, override

from pydantic import BaseModel, ValidationError

from bookpath.internal.errors import ProviderError
from bookpath.internal.models import RawRecord, SearchQuery
from bookpath.internal.normalize import subject_for_query
from bookpath.internal.sources.abstract import AbstractProvider
from bookpath.util.log import logger

GOOGLE_BOOKS_API = "https://www.googleapis.com/books/v1/volumes"


class _IndustryIdentifier(BaseModel):
    type: str
    identifier: str


class _ImageLinks(BaseModel):
    large: Optional[str] = None
    medium: Optional[str] = None
    small: Optional[str] = None
    thumbnail: Optional[str] = None
    smallThumbnail: Optional[str] = None

    @property
    def best(self) -> str | None:
        return (
            self.large
            or self.medium
            or self.small
            or self.thumbnail
            or self.smallThumbnail
        )


class _VolumeInfo(BaseModel):
    title: Optional[str] = None
    authors: list[str] = []
    description: Optional[str] = None
    publishedDate: Optional[str] = None
    categories: list[str] = []
    industryIdentifiers: list[_IndustryIdentifier] = []
    imageLinks: Optional[_ImageLinks] = None


class _ListPrice(BaseModel):
    amount: float
    currencyCode: str


class _SaleInfo(BaseModel):
    listPrice: Optional[_ListPrice] = None


class _Volume(BaseModel):
    id: str = ""
    volumeInfo: _VolumeInfo = _VolumeInfo()
    saleInfo: Optional[_SaleInfo] = None


class _GoogleBooksResponse(BaseModel):
    totalItems: int = 0
    items: list[_Volume] = []


def _term(operator: str, value: str) -> str:
    if " " in value:
        return f'{operator}:"{value}"'
    return f"{operator}:{value}"


def build_google_query(query: SearchQuery) -> str:
    """Uses the `intitle:`, `inauthor:` and `subject:` operators."""
    parts: list[str] = []
    if query.title:
        parts.append(_term("intitle", query.title))
    if query.author:
        parts.append(_term("inauthor", query.author))
    subject = subject_for_query(query)
    if subject:
        parts.append(_term("subject", subject))
    return " ".join(parts)


def _isbns(identifiers: list[_IndustryIdentifier]) -> list[str]:
    # ISBN-13 first, it is the preferred identity hint
    by_type = {i.type: i.identifier for i in identifiers}
    return [by_type[t] for t in ("ISBN_13", "ISBN_10") if by_type.get(t)]


def volume_to_record(volume: _Volume, source: str = "google_books") -> RawRecord:
    info = volume.volumeInfo
    list_price = volume.saleInfo.listPrice if volume.saleInfo else None
    return RawRecord(
        source=source,
        title=info.title,
        authors=info.authors,
        description=info.description,
        cover_image_url=info.imageLinks.best if info.imageLinks else None,
        published=info.publishedDate,
        genres=info.categories,
        isbns=_isbns(info.industryIdentifiers),
        price=list_price.amount if list_price else None,
        currency=list_price.currencyCode if list_price else None,
    )


class GoogleBooksProvider(AbstractProvider):
    name = "google_books"
    display_name = "Google Books"

    @override
    async def fetch(self, query: SearchQuery) -> list[RawRecord]:
        q = build_google_query(query)
        params: dict[str, str | int] = {
            "q": q,
            "maxResults": min(self.settings.max_results, 40),  # API limit
            "printType": "books",
        }
        if self.settings.google_books_api_key:
            params["key"] = self.settings.google_books_api_key

        logger.debug("Searching Google Books", query=q)
        data = await self._get_json(GOOGLE_BOOKS_API, params)

        try:
            response = _GoogleBooksResponse.model_validate(data)
        except ValidationError as e:
            raise ProviderError(
                self.name,
                "upstream_rejected",
                "Google Books returned a malformed response",
            ) from e

        records = [
            volume_to_record(volume, self.name)
            for volume in response.items
            if volume.volumeInfo.title
        ]
        logger.info(
            "Google Books search complete",
            query=q,
            results_found=len(records),
            total_items=response.totalItems,
        )
        return records
