"""
ISBN cleanup, validation and conversion.
ISBN-13 is the canonical form used for identity keys.
"""

from typing import Iterable


def clean_isbn(value: str) -> str:
    """Remove hyphens and spaces, upper-case a trailing X."""
    return value.replace("-", "").replace(" ", "").strip().upper()


def _isbn13_check_digit(first_twelve: str) -> str:
    total = sum(int(d) * (3 if i % 2 else 1) for i, d in enumerate(first_twelve))
    return str((10 - total % 10) % 10)


def is_valid_isbn10(value: str) -> bool:
    isbn = clean_isbn(value)
    if len(isbn) != 10 or not isbn[:9].isdigit():
        return False
    last = isbn[9]
    if not (last.isdigit() or last == "X"):
        return False
    total = sum((10 - i) * int(d) for i, d in enumerate(isbn[:9]))
    total += 10 if last == "X" else int(last)
    return total % 11 == 0


def is_valid_isbn13(value: str) -> bool:
    isbn = clean_isbn(value)
    if len(isbn) != 13 or not isbn.isdigit():
        return False
    if not isbn.startswith(("978", "979")):
        return False
    return isbn[12] == _isbn13_check_digit(isbn[:12])


def isbn10_to_isbn13(value: str) -> str | None:
    """Every ISBN-10 maps into the 978 prefix. Returns None for invalid input."""
    if not is_valid_isbn10(value):
        return None
    body = "978" + clean_isbn(value)[:9]
    return body + _isbn13_check_digit(body)


def canonical_isbn(value: str) -> str | None:
    """The ISBN-13 form of a valid ISBN-10 or ISBN-13, else None."""
    if is_valid_isbn13(value):
        return clean_isbn(value)
    return isbn10_to_isbn13(value)


def first_canonical_isbn(values: Iterable[str]) -> str | None:
    for value in values:
        isbn = canonical_isbn(value)
        if isbn:
            return isbn
    return None
