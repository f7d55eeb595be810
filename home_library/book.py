from __future__ import annotations

from datetime import date

from home_library.loans import parse_iso_date

# Field order of a record in the persisted JSON array
FIELDS = ("title", "author", "issue_date", "due_date", "reader", "genre")


class Book:
    """A single book record in the home library."""

    def __init__(self, title: str, author: str, genre: str, issue_date: str = "", due_date: str = "",
                 reader: str = "") -> None:
        self.title = title
        self.author = author
        self.genre = genre
        # Loan fields: all empty while the book is on the shelf
        self.issue_date = issue_date
        self.due_date = due_date
        self.reader = reader

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} ({self.genre})"

    def __repr__(self) -> str:  # pragma: no cover
        return f"Book({self.to_dict()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    @property
    def key(self) -> str:
        """Case-insensitive identity of the record."""
        return self.title.lower()

    @property
    def is_available(self) -> bool:
        return self.issue_date == ""

    @property
    def is_on_loan(self) -> bool:
        return self.reader != ""

    def is_overdue(self, today: date) -> bool:
        """True when the due date parses and lies strictly before ``today``."""
        if not self.due_date:
            return False
        due = parse_iso_date(self.due_date)
        return due is not None and due < today

    def set_loan(self, issue_date: str, due_date: str, reader: str) -> None:
        self.issue_date = issue_date
        self.due_date = due_date
        self.reader = reader

    def clear_loan(self) -> None:
        self.set_loan("", "", "")

    def copy(self) -> "Book":
        return Book.from_dict(self.to_dict())

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "author": self.author,
            "issue_date": self.issue_date,
            "due_date": self.due_date,
            "reader": self.reader,
            "genre": self.genre,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        # Older files were written without "reader" on freshly added books
        return Book(
            title=str(data["title"]),
            author=str(data.get("author") or ""),
            genre=str(data.get("genre") or ""),
            issue_date=str(data.get("issue_date") or ""),
            due_date=str(data.get("due_date") or ""),
            reader=str(data.get("reader") or ""),
        )
