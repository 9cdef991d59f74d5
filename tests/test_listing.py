"""
Tests for filtering, sorting and pagination of merged results.
"""

from bookpath.internal.listing import PAGE_SIZE, apply_filters, paginate, sort_books
from tests.fakes import book


def _titles(books):
    return [b.title for b in books]


# =============================================================================
# Filters
# =============================================================================


def test_condition_filter_excludes_unknown_and_other_conditions():
    books = [
        book("A", condition="used"),
        book("B", condition="unknown"),
        book("C", condition="new"),
        book("D", condition="used"),
    ]

    assert _titles(apply_filters(books, condition="used")) == ["A", "D"]
    assert _titles(apply_filters(books, condition="new")) == ["C"]


def test_no_condition_filter_keeps_everything():
    books = [book("A", condition="unknown"), book("B", condition="new")]
    assert _titles(apply_filters(books)) == ["A", "B"]
    assert _titles(apply_filters(books, condition="unknown")) == ["A", "B"]


def test_category_filter_is_exact():
    books = [
        book("A", category="Sci-Fi"),
        book("B", category="Fiction"),
        book("C"),
    ]
    assert _titles(apply_filters(books, category="Sci-Fi")) == ["A"]
    assert _titles(apply_filters(books, category="sci-fi")) == []


def test_filters_combine():
    books = [
        book("A", category="Sci-Fi", condition="new"),
        book("B", category="Sci-Fi", condition="used"),
    ]
    assert _titles(apply_filters(books, condition="used", category="Sci-Fi")) == ["B"]


# =============================================================================
# Sorting
# =============================================================================


def test_newest_sorts_descending_with_missing_years_last():
    books = [
        book("A", first_publish_year=1965),
        book("B"),
        book("C", first_publish_year=2020),
        book("D", first_publish_year=1965),
    ]
    assert _titles(sort_books(books, "newest")) == ["C", "A", "D", "B"]


def test_author_az_sorts_by_first_author_with_missing_last():
    books = [
        book("A", authors=["ursula K. Le Guin"]),
        book("B", authors=[]),
        book("C", authors=["Frank Herbert", "Aaron Aardvark"]),
        book("D", authors=["Isaac Asimov"]),
    ]
    assert _titles(sort_books(books, "author_az")) == ["C", "D", "A", "B"]


def test_relevance_and_default_keep_merge_order():
    books = [book("B", first_publish_year=1), book("A", first_publish_year=2)]
    assert _titles(sort_books(books, "relevance")) == ["B", "A"]
    assert _titles(sort_books(books, None)) == ["B", "A"]


# =============================================================================
# Pagination
# =============================================================================


def _many(count):
    return [book(f"Book {i}") for i in range(count)]


def test_first_page():
    items, pagination = paginate(_many(45), 1)

    assert len(items) == PAGE_SIZE
    assert items[0].title == "Book 0"
    assert pagination.total_results == 45
    assert pagination.total_pages == 3
    assert pagination.has_next is True
    assert pagination.has_previous is False


def test_last_page_is_partial():
    items, pagination = paginate(_many(45), 3)

    assert _titles(items) == [f"Book {i}" for i in range(40, 45)]
    assert pagination.has_next is False
    assert pagination.has_previous is True


def test_page_beyond_total_pages_is_empty():
    items, pagination = paginate(_many(5), 4)

    assert items == []
    assert pagination.current_page == 4
    assert pagination.total_pages == 1
    assert pagination.total_results == 5
    assert pagination.has_next is False


def test_empty_result_set():
    items, pagination = paginate([], 1)

    assert items == []
    assert pagination.total_pages == 0
    assert pagination.has_next is False
    assert pagination.has_previous is False
