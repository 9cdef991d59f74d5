"""
Open Library search provider.
"""

from typing import Optional, override

from pydantic import BaseModel, ValidationError

from bookpath.internal.errors import ProviderError
from bookpath.internal.models import RawRecord, SearchQuery
from bookpath.internal.sources.abstract import AbstractProvider
from bookpath.util.log import logger

OPENLIBRARY_SEARCH_API = "https://openlibrary.org/search.json"
OPENLIBRARY_COVERS = "https://covers.openlibrary.org"

_FIELDS = ",".join(
    (
        "key",
        "title",
        "author_name",
        "first_publish_year",
        "isbn",
        "cover_i",
        "cover_edition_key",
        "subject",
    )
)


class _OpenLibraryDoc(BaseModel):
    key: str = ""
    title: Optional[str] = None
    author_name: list[str] = []
    first_publish_year: Optional[int] = None
    isbn: list[str] = []
    cover_i: Optional[int] = None
    cover_edition_key: Optional[str] = None
    subject: list[str] = []


class _OpenLibraryResponse(BaseModel):
    numFound: int = 0
    docs: list[_OpenLibraryDoc] = []


def _cover_url(doc: _OpenLibraryDoc) -> str | None:
    if doc.cover_i:
        return f"{OPENLIBRARY_COVERS}/b/id/{doc.cover_i}-L.jpg"
    if doc.cover_edition_key:
        return f"{OPENLIBRARY_COVERS}/b/olid/{doc.cover_edition_key}-L.jpg"
    return None


def build_openlibrary_query(query: SearchQuery) -> str:
    parts: list[str] = []
    if query.title:
        parts.append(f'title:"{query.title}"')
    if query.author:
        parts.append(f'author:"{query.author}"')
    return " AND ".join(parts)


def doc_to_record(doc: _OpenLibraryDoc, source: str = "openlibrary") -> RawRecord:
    return RawRecord(
        source=source,
        title=doc.title,
        authors=doc.author_name,
        cover_image_url=_cover_url(doc),
        published=doc.first_publish_year,
        subjects=doc.subject[:5],
        isbns=doc.isbn[:1],
    )


class OpenLibraryProvider(AbstractProvider):
    name = "openlibrary"
    display_name = "Open Library"

    @override
    def can_serve(self, query: SearchQuery) -> bool:
        # subject browsing is left to providers with a proper subject index
        return bool(query.title or query.author)

    @override
    async def fetch(self, query: SearchQuery) -> list[RawRecord]:
        q = build_openlibrary_query(query)
        params: dict[str, str | int] = {
            "q": q,
            "limit": min(self.settings.max_results, 100),
            "fields": _FIELDS,
        }

        logger.debug("Searching Open Library", query=q)
        data = await self._get_json(OPENLIBRARY_SEARCH_API, params)

        try:
            response = _OpenLibraryResponse.model_validate(data)
        except ValidationError as e:
            raise ProviderError(
                self.name,
                "upstream_rejected",
                "Open Library returned a malformed response",
            ) from e

        records = [doc_to_record(doc, self.name) for doc in response.docs if doc.title]
        logger.info(
            "Open Library search complete",
            query=q,
            results_found=len(records),
            num_found=response.numFound,
        )
        return records
