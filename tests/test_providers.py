"""
Tests for the Google Books and Open Library adapters, driven by a fake
aiohttp session.
"""

import asyncio

import aiohttp
import pytest

from bookpath.internal.env_settings import ProviderSettings
from bookpath.internal.errors import ProviderError
from bookpath.internal.models import SearchQuery
from bookpath.internal.sources import (
    GoogleBooksProvider,
    OpenLibraryProvider,
    build_google_query,
    build_openlibrary_query,
    create_providers,
)
from bookpath.internal.sources.google_books_api import GOOGLE_BOOKS_API
from bookpath.internal.sources.openlibrary_api import OPENLIBRARY_SEARCH_API
from tests.fakes import FakeClientSession, FakeResponse

GOOGLE_PAYLOAD = {
    "totalItems": 2,
    "items": [
        {
            "id": "B1rLAAAAQBAJ",
            "volumeInfo": {
                "title": "Dune",
                "authors": ["Frank Herbert"],
                "description": "Melange, spice, sandworms.",
                "publishedDate": "1965-08-01",
                "categories": ["Fiction / Science Fiction / General"],
                "industryIdentifiers": [
                    {"type": "ISBN_10", "identifier": "0441013597"},
                    {"type": "ISBN_13", "identifier": "9780441013593"},
                ],
                "imageLinks": {
                    "smallThumbnail": "http://books.google.com/small",
                    "thumbnail": "http://books.google.com/thumb",
                },
            },
            "saleInfo": {"listPrice": {"amount": 11.99, "currencyCode": "EUR"}},
        },
        {"id": "untitled", "volumeInfo": {"authors": ["Nobody"]}},
    ],
}

OPENLIBRARY_PAYLOAD = {
    "numFound": 1,
    "docs": [
        {
            "key": "/works/OL893415W",
            "title": "Dune",
            "author_name": ["Frank Herbert"],
            "first_publish_year": 1965,
            "isbn": ["9780441013593", "0441013597"],
            "cover_i": 11481354,
            "subject": ["Science fiction", "Dune (Imaginary place)", "Fiction", "Deserts", "Ecology", "Messiahs"],
        },
        {
            "key": "/works/OL1W",
            "title": "Children of Dune",
            "author_name": ["Frank Herbert"],
            "cover_edition_key": "OL7353617M",
        },
    ],
}


def google(session: FakeClientSession, **settings) -> GoogleBooksProvider:
    return GoogleBooksProvider(session, ProviderSettings(**settings))  # pyright: ignore[reportArgumentType]


def openlibrary(session: FakeClientSession, **settings) -> OpenLibraryProvider:
    return OpenLibraryProvider(session, ProviderSettings(**settings))  # pyright: ignore[reportArgumentType]


# =============================================================================
# Query builders
# =============================================================================


def test_google_query_combines_operators():
    query = SearchQuery(title="dune", author="Frank Herbert", subject="space opera")
    assert build_google_query(query) == 'intitle:dune inauthor:"Frank Herbert" subject:"space opera"'


def test_google_query_maps_category_to_subject():
    assert build_google_query(SearchQuery(category="Sci-Fi")) == 'subject:"science fiction"'
    assert build_google_query(SearchQuery(category="Tech")) == "subject:technology"


def test_openlibrary_query_uses_field_syntax():
    query = SearchQuery(title="Dune", author="Herbert")
    assert build_openlibrary_query(query) == 'title:"Dune" AND author:"Herbert"'


def test_openlibrary_declines_subject_only_queries():
    provider = openlibrary(FakeClientSession())
    assert not provider.can_serve(SearchQuery(subject="fantasy"))
    assert provider.can_serve(SearchQuery(author="Tolkien", subject="fantasy"))
    assert google(FakeClientSession()).can_serve(SearchQuery(subject="fantasy"))


# =============================================================================
# Google Books
# =============================================================================


def test_google_fetch_parses_volumes():
    session = FakeClientSession(FakeResponse(payload=GOOGLE_PAYLOAD))
    provider = google(session, google_books_api_key="secret", max_results=100)

    records = asyncio.run(provider.fetch(SearchQuery(title="dune")))

    url, params = session.requests[0]
    assert url == GOOGLE_BOOKS_API
    assert params == {
        "q": "intitle:dune",
        "maxResults": 40,
        "printType": "books",
        "key": "secret",
    }

    assert len(records) == 1
    record = records[0]
    assert record.source == "google_books"
    assert record.title == "Dune"
    assert record.published == "1965-08-01"
    assert record.genres == ["Fiction / Science Fiction / General"]
    assert record.isbns == ["9780441013593", "0441013597"]
    assert record.cover_image_url == "http://books.google.com/thumb"
    assert record.price == 11.99
    assert record.currency == "EUR"


def test_google_fetch_without_api_key():
    session = FakeClientSession(FakeResponse(payload={"totalItems": 0}))

    records = asyncio.run(google(session).fetch(SearchQuery(author="Herbert")))

    assert records == []
    assert "key" not in session.requests[0][1]


# =============================================================================
# Open Library
# =============================================================================


def test_openlibrary_fetch_parses_docs():
    session = FakeClientSession(FakeResponse(payload=OPENLIBRARY_PAYLOAD))

    records = asyncio.run(openlibrary(session).fetch(SearchQuery(title="Dune")))

    url, params = session.requests[0]
    assert url == OPENLIBRARY_SEARCH_API
    assert params["q"] == 'title:"Dune"'
    assert params["limit"] == 40
    assert "author_name" in params["fields"]

    dune, children = records
    assert dune.source == "openlibrary"
    assert dune.published == 1965
    assert dune.isbns == ["9780441013593"]
    assert dune.subjects == ["Science fiction", "Dune (Imaginary place)", "Fiction", "Deserts", "Ecology"]
    assert dune.cover_image_url == "https://covers.openlibrary.org/b/id/11481354-L.jpg"
    assert children.cover_image_url == "https://covers.openlibrary.org/b/olid/OL7353617M-L.jpg"
    assert children.isbns == []


# =============================================================================
# Failures
# =============================================================================


@pytest.mark.parametrize(
    "status, message",
    [
        (403, "Google Books API access denied"),
        (429, "Google Books API rate limit exceeded"),
        (500, "Google Books returned HTTP 500"),
    ],
)
def test_http_errors_are_upstream_rejections(status, message):
    session = FakeClientSession(FakeResponse(status=status, payload=None, reason="nope"))

    with pytest.raises(ProviderError) as exc_info:
        asyncio.run(google(session).fetch(SearchQuery(title="dune")))

    assert exc_info.value.kind == "upstream_rejected"
    assert exc_info.value.status == status
    assert exc_info.value.provider == "google_books"
    assert str(exc_info.value) == message


def test_connection_errors_are_transport_failures():
    session = FakeClientSession(exception=aiohttp.ClientConnectionError("connection reset"))

    with pytest.raises(ProviderError) as exc_info:
        asyncio.run(openlibrary(session).fetch(SearchQuery(title="dune")))

    assert exc_info.value.kind == "transport_failure"
    assert "connection reset" in str(exc_info.value)


def test_request_timeouts_are_timeouts():
    session = FakeClientSession(exception=asyncio.TimeoutError())

    with pytest.raises(ProviderError) as exc_info:
        asyncio.run(google(session).fetch(SearchQuery(title="dune")))

    assert exc_info.value.kind == "timeout"


@pytest.mark.parametrize("payload", [None, {"items": "not a list"}])
def test_malformed_google_payload_is_rejected(payload):
    session = FakeClientSession(FakeResponse(payload=payload))

    with pytest.raises(ProviderError, match="malformed") as exc_info:
        asyncio.run(google(session).fetch(SearchQuery(title="dune")))

    assert exc_info.value.kind == "upstream_rejected"


@pytest.mark.parametrize("payload", [None, {"docs": [{"title": ["not", "a", "string"]}]}])
def test_malformed_openlibrary_payload_is_rejected(payload):
    session = FakeClientSession(FakeResponse(payload=payload))

    with pytest.raises(ProviderError, match="malformed") as exc_info:
        asyncio.run(openlibrary(session).fetch(SearchQuery(title="dune")))

    assert exc_info.value.kind == "upstream_rejected"


# =============================================================================
# Registry
# =============================================================================


def test_create_providers_keeps_configured_order():
    settings = ProviderSettings(enabled=["openlibrary", "goodreads", "google_books"])

    providers = create_providers(FakeClientSession(), settings)  # pyright: ignore[reportArgumentType]

    assert [p.name for p in providers] == ["openlibrary", "google_books"]
    assert all(p.settings is settings for p in providers)
