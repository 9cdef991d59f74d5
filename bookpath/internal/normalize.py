"""
Provider record normalization.

Turns a `RawRecord` into a `CanonicalBook`. Everything in here is pure and
deterministic so category and condition handling can be tested in isolation.
"""

import re
from typing import Iterable

from bookpath.internal.models import CanonicalBook, Condition, RawRecord, SearchQuery
from bookpath.internal.isbn_utils import first_canonical_isbn

# Checked top to bottom against the lower-cased subjects, first hit wins.
# A keyword has to come before every keyword it contains
# ("science fiction" and "non-fiction" before "fiction").
CATEGORY_TABLE: tuple[tuple[str, str], ...] = (
    ("science fiction", "Sci-Fi"),
    ("sci-fi", "Sci-Fi"),
    ("non-fiction", "Non-fiction"),
    ("nonfiction", "Non-fiction"),
    ("fantasy", "Fantasy"),
    ("mystery", "Mystery"),
    ("romance", "Romance"),
    ("history", "History"),
    ("biography", "Biography"),
    ("self-help", "Self-Help"),
    ("self help", "Self-Help"),
    ("business", "Business"),
    ("technology", "Tech"),
    ("computers", "Tech"),
    ("fiction", "Fiction"),
)

# Upstream subject term used when a query only names a category label
CATEGORY_SUBJECTS: dict[str, str] = {
    "Fiction": "fiction",
    "Non-fiction": "nonfiction",
    "Sci-Fi": "science fiction",
    "Fantasy": "fantasy",
    "Mystery": "mystery",
    "Romance": "romance",
    "History": "history",
    "Biography": "biography",
    "Self-Help": "self-help",
    "Business": "business",
    "Tech": "technology",
}

_YEAR_PATTERN = re.compile(r"^\s*(\d{4})")


def derive_category(subjects: Iterable[str]) -> str | None:
    haystack = " | ".join(s.lower() for s in subjects)
    if not haystack:
        return None
    for keyword, label in CATEGORY_TABLE:
        if keyword in haystack:
            return label
    return None


def subject_for_category(category: str) -> str:
    return CATEGORY_SUBJECTS.get(category, category.lower())


def subject_for_query(query: SearchQuery) -> str | None:
    """An explicit subject wins over the one implied by the category."""
    if query.subject:
        return query.subject
    if query.category:
        return subject_for_category(query.category)
    return None


def normalize_condition(raw: str | None) -> Condition:
    if raw is None:
        return "unknown"
    value = raw.strip().lower()
    if value == "new" or value == "used":
        return value
    return "unknown"


def parse_year(published: str | int | None) -> int | None:
    """Accepts 1965, "1965", "1965-08" and "1965-08-01"."""
    if published is None:
        return None
    if isinstance(published, int):
        return published if published > 0 else None
    match = _YEAR_PATTERN.match(published)
    if not match:
        return None
    return int(match.group(1))


def _clean_strings(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    cleaned: list[str] = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.add(value)
            cleaned.append(value)
    return cleaned


def normalize_record(record: RawRecord) -> CanonicalBook | None:
    """Returns None for records without a usable title."""
    title = (record.title or "").strip()
    if not title:
        return None

    subjects = _clean_strings([*record.subjects, *record.genres])

    return CanonicalBook(
        identity_hint=first_canonical_isbn(record.isbns),
        title=title,
        authors=_clean_strings(record.authors),
        description=(record.description or "").strip() or None,
        cover_image_url=record.cover_image_url or None,
        first_publish_year=parse_year(record.published),
        subjects=subjects,
        category=derive_category(subjects),
        condition=normalize_condition(record.condition),
        price=record.price,
        currency=record.currency if record.price is not None else None,
        source_id=record.source,
    )


def normalize_records(records: Iterable[RawRecord]) -> list[CanonicalBook]:
    books: list[CanonicalBook] = []
    for record in records:
        book = normalize_record(record)
        if book is not None:
            books.append(book)
    return books
