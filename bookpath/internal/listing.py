"""
Filtering, sorting and pagination of the merged result set.
Only ever applied after deduplication across all providers.
"""

import math
from typing import Sequence

from bookpath.internal.models import CanonicalBook, Condition, Pagination, SortOrder

PAGE_SIZE = 20


def apply_filters(
    books: Sequence[CanonicalBook],
    condition: Condition | None = None,
    category: str | None = None,
) -> list[CanonicalBook]:
    filtered = list(books)
    # records with an unknown condition never satisfy a condition filter
    if condition == "new" or condition == "used":
        filtered = [b for b in filtered if b.condition == condition]
    if category:
        filtered = [b for b in filtered if b.category == category]
    return filtered


def sort_books(
    books: Sequence[CanonicalBook],
    sort: SortOrder | None = None,
) -> list[CanonicalBook]:
    """Stable sorts, missing values last. `relevance` keeps the merge order."""
    if sort == "newest":
        return sorted(
            books,
            key=lambda b: (
                b.first_publish_year is None,
                -(b.first_publish_year or 0),
            ),
        )
    if sort == "author_az":
        return sorted(
            books,
            key=lambda b: (
                not b.authors,
                b.authors[0].casefold() if b.authors else "",
            ),
        )
    return list(books)


def paginate(
    books: Sequence[CanonicalBook],
    page: int,
    page_size: int = PAGE_SIZE,
) -> tuple[list[CanonicalBook], Pagination]:
    total_results = len(books)
    total_pages = math.ceil(total_results / page_size)
    start = (page - 1) * page_size
    items = list(books[start : start + page_size])
    return items, Pagination(
        current_page=page,
        total_pages=total_pages,
        total_results=total_results,
        has_next=page < total_pages,
        has_previous=page > 1,
    )
