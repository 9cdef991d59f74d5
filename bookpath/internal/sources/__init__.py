"""
Book data providers and the fan-out that queries them together.
Supports Google Books and Open Library.
"""

from bookpath.internal.sources.abstract import AbstractProvider
from bookpath.internal.sources.google_books_api import (
    GoogleBooksProvider,
    build_google_query,
)
from bookpath.internal.sources.openlibrary_api import (
    OpenLibraryProvider,
    build_openlibrary_query,
)
from bookpath.internal.sources.providers import create_providers, provider_types
from bookpath.internal.sources.unified_search import fan_out

__all__ = [
    "AbstractProvider",
    # Google Books
    "GoogleBooksProvider",
    "build_google_query",
    # Open Library
    "OpenLibraryProvider",
    "build_openlibrary_query",
    # Registry
    "create_providers",
    "provider_types",
    # Fan-out
    "fan_out",
]
