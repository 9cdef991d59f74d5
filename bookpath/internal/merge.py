"""
Identity resolution and merging of duplicate records across providers.

Records are grouped by `identity_key`. Every group is folded into one record
with `merge_books`, which picks each field independently: the value coming
from the best ranked source wins, a missing value never wins over a present
one, and on equal rank the left operand wins. Because the choice only
depends on (rank, position) per field, folding a group in any grouping gives
the same record.
"""

from typing import Any, Iterable, Sequence

from bookpath.internal.models import CanonicalBook
from bookpath.util.log import logger

# price and currency travel together, see _field_values
MERGE_FIELDS: tuple[str, ...] = (
    "identity_hint",
    "title",
    "authors",
    "description",
    "cover_image_url",
    "first_publish_year",
    "category",
    "condition",
    "price",
)


class SourcePriority:
    """Lower rank wins. Sources missing from the order share the last rank."""

    def __init__(self, order: Sequence[str]):
        self.order = tuple(order)
        self._ranks = {source: i for i, source in enumerate(self.order)}

    def rank(self, source: str) -> int:
        return self._ranks.get(source, len(self.order))


def _normalize_key_part(value: str) -> str:
    return "".join(ch for ch in value.lower() if ch.isalnum())


def identity_key(book: CanonicalBook) -> str:
    if book.identity_hint:
        return f"id:{book.identity_hint}"
    title = _normalize_key_part(book.title)
    authors = _normalize_key_part("".join(book.authors))
    return f"{title}-{authors}"


def _has_value(book: CanonicalBook, field: str) -> bool:
    value: Any = getattr(book, field)
    if field == "condition":
        return value != "unknown"
    if isinstance(value, list):
        return len(value) > 0
    return value is not None


def _field_source(book: CanonicalBook, field: str) -> str:
    return book.field_sources.get(field, book.source_id)


def _field_values(book: CanonicalBook, field: str) -> dict[str, Any]:
    if field == "price":
        return {"price": book.price, "currency": book.currency}
    return {field: getattr(book, field)}


def _union(left: Iterable[str], right: Iterable[str]) -> list[str]:
    merged = list(left)
    seen = set(merged)
    for value in right:
        if value not in seen:
            seen.add(value)
            merged.append(value)
    return merged


def merge_books(
    left: CanonicalBook,
    right: CanonicalBook,
    priority: SourcePriority,
) -> CanonicalBook:
    """Merge two records of the same identity into a new record."""
    update: dict[str, Any] = {}
    field_sources: dict[str, str] = {}

    for field in MERGE_FIELDS:
        left_has = _has_value(left, field)
        right_has = _has_value(right, field)
        if left_has and right_has:
            left_rank = priority.rank(_field_source(left, field))
            right_rank = priority.rank(_field_source(right, field))
            winner = left if left_rank <= right_rank else right
        elif left_has:
            winner = left
        elif right_has:
            winner = right
        else:
            continue
        update.update(_field_values(winner, field))
        field_sources[field] = _field_source(winner, field)

    if priority.rank(right.source_id) < priority.rank(left.source_id):
        update["source_id"] = right.source_id
    update["subjects"] = _union(left.subjects, right.subjects)
    update["field_sources"] = field_sources

    return left.model_copy(update=update)


def deduplicate(
    books: Iterable[CanonicalBook],
    priority: SourcePriority,
) -> list[CanonicalBook]:
    """
    Collapses records sharing an identity key.
    Output keeps the position of the first record of every group.
    """
    groups: dict[str, CanonicalBook] = {}
    total = 0
    for book in books:
        total += 1
        key = identity_key(book)
        existing = groups.get(key)
        groups[key] = book if existing is None else merge_books(existing, book, priority)

    logger.info(
        "Deduplication complete",
        input_books=total,
        unique_books=len(groups),
    )
    return list(groups.values())
