from datetime import date

import pytest

from home_library.book import Book
from home_library.loans import compute_due_date, due_date_for, parse_iso_date, today_iso


@pytest.mark.parametrize("issue, due", [
    (date(2024, 1, 20), date(2024, 3, 31)),
    (date(2024, 1, 31), date(2024, 3, 31)),
    (date(2023, 12, 5), date(2024, 2, 29)),
    (date(2024, 12, 5), date(2025, 2, 28)),
    (date(2024, 11, 30), date(2025, 1, 31)),
    (date(2024, 6, 1), date(2024, 8, 31)),
])
def test_due_date_rolls_over_two_months(issue, due):
    assert compute_due_date(issue) == due


def test_due_date_for_strings():
    assert due_date_for("2024-01-20") == "2024-03-31"
    assert due_date_for("2024-01-20T10:15:00") == "2024-03-31"
    assert due_date_for("") == ""
    assert due_date_for("garbage") == ""


def test_parse_iso_date():
    assert parse_iso_date("2024-03-01") == date(2024, 3, 1)
    assert parse_iso_date("2024-03-01T23:59:59.000Z") == date(2024, 3, 1)
    assert parse_iso_date("") is None
    assert parse_iso_date("03/01/2024") is None


def test_today_iso():
    assert today_iso(date(2024, 3, 15)) == "2024-03-15"


def test_book_overdue_predicate():
    today = date(2024, 3, 15)
    assert Book("A", "x", "g", "2024-01-01", "2024-03-01", "r").is_overdue(today)
    assert not Book("B", "x", "g", "2024-01-01", "2024-03-20", "r").is_overdue(today)
    assert not Book("C", "x", "g", "2024-01-01", "2024-03-15", "r").is_overdue(today)
    assert not Book("D", "x", "g").is_overdue(today)


def test_book_from_dict_fills_missing_fields():
    book = Book.from_dict({"title": "Dune", "author": "Frank Herbert", "issue_date": "", "due_date": "", "genre": "SF"})
    assert book.reader == ""
    assert book.is_available
    assert not book.is_on_loan
    assert list(book.to_dict()) == ["title", "author", "issue_date", "due_date", "reader", "genre"]
