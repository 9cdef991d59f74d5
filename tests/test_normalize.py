"""
Tests for record normalization: category derivation, condition, years.
"""

import pytest

from bookpath.internal.models import SearchQuery
from bookpath.internal.normalize import (
    CATEGORY_TABLE,
    derive_category,
    normalize_condition,
    normalize_record,
    normalize_records,
    parse_year,
    subject_for_query,
)
from tests.fakes import raw


# =============================================================================
# Category table
# =============================================================================


def test_specific_keywords_precede_the_keywords_they_contain():
    keywords = [keyword for keyword, _ in CATEGORY_TABLE]
    for i, keyword in enumerate(keywords):
        for later in keywords[i + 1 :]:
            assert keyword not in later, (
                f"'{later}' contains '{keyword}' and would never match"
            )


@pytest.mark.parametrize(
    "subjects, expected",
    [
        (["Science Fiction"], "Sci-Fi"),
        (["Fiction / Science Fiction / General"], "Sci-Fi"),
        (["Fiction"], "Fiction"),
        (["Non-Fiction"], "Non-fiction"),
        (["Juvenile Nonfiction"], "Non-fiction"),
        (["Fiction / Fantasy / Epic"], "Fantasy"),
        (["Computers / Programming"], "Tech"),
        (["Self Help"], "Self-Help"),
        (["Cooking"], None),
        ([], None),
    ],
)
def test_derive_category(subjects, expected):
    assert derive_category(subjects) == expected


def test_derive_category_uses_table_order_not_subject_order():
    # "fiction" is listed first among the subjects but "mystery" is earlier in the table
    assert derive_category(["Fiction", "Mystery & Detective"]) == "Mystery"


def test_derive_category_is_deterministic():
    subjects = ["History", "Biography & Autobiography"]
    assert {derive_category(subjects) for _ in range(10)} == {"History"}


# =============================================================================
# Condition and year
# =============================================================================


@pytest.mark.parametrize(
    "value, expected",
    [
        ("new", "new"),
        (" Used ", "used"),
        ("NEW", "new"),
        ("like new", "unknown"),
        ("", "unknown"),
        (None, "unknown"),
    ],
)
def test_normalize_condition(value, expected):
    assert normalize_condition(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("1965", 1965),
        ("1965-08", 1965),
        ("2005-08-02", 2005),
        (1965, 1965),
        ("circa 1965", None),
        ("", None),
        (None, None),
        (0, None),
    ],
)
def test_parse_year(value, expected):
    assert parse_year(value) == expected


# =============================================================================
# Records
# =============================================================================


def test_normalize_record_maps_all_fields():
    record = raw(
        title="  Dune ",
        authors=["Frank Herbert", " ", "Frank Herbert"],
        description="Desert planet.",
        cover_image_url="https://covers.example/dune.jpg",
        published="1965-08-01",
        subjects=["Science Fiction"],
        genres=["Fiction", "Science Fiction"],
        isbns=["0441013597"],
        condition="Used",
        price=9.0,
        currency="EUR",
        source="google_books",
    )

    result = normalize_record(record)

    assert result is not None
    assert result.title == "Dune"
    assert result.authors == ["Frank Herbert"]
    assert result.description == "Desert planet."
    assert result.first_publish_year == 1965
    assert result.subjects == ["Science Fiction", "Fiction"]
    assert result.category == "Sci-Fi"
    assert result.condition == "used"
    assert result.price == 9.0
    assert result.currency == "EUR"
    assert result.identity_hint == "9780441013593"
    assert result.source_id == "google_books"
    assert result.affiliate_url is None


def test_normalize_record_defaults():
    result = normalize_record(raw(authors=[]))

    assert result is not None
    assert result.authors == []
    assert result.subjects == []
    assert result.category is None
    assert result.condition == "unknown"
    assert result.identity_hint is None


def test_normalize_record_drops_currency_without_price():
    result = normalize_record(raw(currency="USD"))
    assert result is not None
    assert result.currency is None


@pytest.mark.parametrize("title", [None, "", "   "])
def test_records_without_title_are_dropped(title):
    assert normalize_record(raw(title=title)) is None


def test_normalize_records_keeps_order():
    records = [raw("B"), raw(None), raw("A")]
    assert [b.title for b in normalize_records(records)] == ["B", "A"]


def test_invalid_isbn_is_not_used_as_identity():
    result = normalize_record(raw(isbns=["1234567890"]))
    assert result is not None
    assert result.identity_hint is None


# =============================================================================
# Subject terms
# =============================================================================


def test_subject_for_query():
    assert subject_for_query(SearchQuery(category="Sci-Fi")) == "science fiction"
    assert subject_for_query(SearchQuery(category="Poetry")) == "poetry"
    assert subject_for_query(SearchQuery(category="Sci-Fi", subject="space opera")) == "space opera"
    assert subject_for_query(SearchQuery(title="Dune")) is None
