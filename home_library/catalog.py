import logging
import threading
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional
from urllib.parse import unquote

from home_library.book import Book
from home_library.config import settings
from home_library.loans import due_date_for, today_iso
from home_library.results import (
    NOT_FOUND,
    BookLookup,
    CountedList,
    Found,
    GroupedTitles,
    TakeOutcome,
    TakeResult,
)
from home_library.storage import WriteBack, load_books

logger = logging.getLogger(__name__)


def title_key(title: Optional[str]) -> str:
    """Identity of a title: compared exactly as stored, ignoring case."""
    return "" if title is None else str(title).lower()


def normalize_key(value: Optional[str]) -> str:
    """Decode URL escapes such as ``%20`` in an author or genre and trim it."""
    if value is None:
        return ""
    return unquote(str(value)).strip()


def _distinct(values: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for value in values:
        seen.setdefault(value, None)
    return list(seen)


class Catalog:
    """Holds the book collection in memory and keeps the data file in sync.

    The collection is read once from ``data_file``. Queries work on the
    in-memory list; each effective mutation updates memory first and then
    schedules a full rewrite of the file.
    """

    def __init__(self, data_file: Optional[str] = None, *, sync_writes: Optional[bool] = None,
                 clock: Callable[[], date] = date.today) -> None:
        self.data_file = data_file or settings.data_file
        if sync_writes is None:
            sync_writes = settings.sync_writes
        self._clock = clock
        self._lock = threading.RLock()
        self._writer = WriteBack(self.data_file, sync=sync_writes)
        self.books: List[Book] = load_books(self.data_file)

    def __len__(self) -> int:
        return len(self.books)

    def today(self) -> date:
        return self._clock()

    # ------------------------- Lookups ------------------------- #
    def _index_of(self, title: Optional[str]) -> int:
        key = title_key(title)
        for index, book in enumerate(self.books):
            if book.key == key:
                return index
        return -1

    def _find(self, title: Optional[str]) -> Optional[Book]:
        index = self._index_of(title)
        return self.books[index] if index != -1 else None

    def find_book(self, title: str) -> Optional[Book]:
        """Return a copy of the book with this title (any case), or None."""
        book = self._find(title)
        return book.copy() if book else None

    def get_book_details(self, title: str) -> BookLookup:
        book = self._find(title)
        if book is None:
            return NOT_FOUND
        return Found(book.copy())

    def title_exists(self, title: str, exclude: Optional[str] = None) -> bool:
        """True if another record already uses ``title``, ignoring case.

        ``exclude`` names a record to ignore, so renaming a book to a
        different casing of its own title is allowed.
        """
        key = title_key(title)
        skip = title_key(exclude) if exclude is not None else None
        return any(book.key == key and book.key != skip for book in self.books)

    def list_books(self) -> List[Book]:
        return [book.copy() for book in self.books]

    # ------------------------- Queries ------------------------- #
    def count_and_list_books(self) -> CountedList:
        return CountedList.of([book.title for book in self.books])

    def count_and_list_authors(self) -> CountedList:
        return CountedList.of(_distinct(book.author for book in self.books))

    def count_and_list_genres(self) -> CountedList:
        return CountedList.of(_distinct(book.genre for book in self.books))

    def count_and_list_available(self) -> CountedList:
        return CountedList.of([book.title for book in self.books if book.is_available])

    def count_and_list_overdue(self, today: Optional[date] = None) -> CountedList:
        """Books whose due date is before ``today``; a book due today is not overdue."""
        today = today or self.today()
        return CountedList.of([book.title for book in self.books if book.is_overdue(today)])

    def _group_titles(self, field: str, value: Optional[str]) -> GroupedTitles:
        name = normalize_key(value)
        if not name:
            return GroupedTitles(name=None)
        key = name.lower()
        titles = [book.title for book in self.books if normalize_key(getattr(book, field)).lower() == key]
        return GroupedTitles(name=name, titles=titles)

    def get_books_by_genre(self, genre: Optional[str]) -> GroupedTitles:
        return self._group_titles("genre", genre)

    def get_books_by_author(self, author: Optional[str]) -> GroupedTitles:
        return self._group_titles("author", author)

    def get_statistics(self, today: Optional[date] = None) -> Dict[str, int]:
        """Counts shown on the catalog index page."""
        return {
            "book_count": self.count_and_list_books().count,
            "book_available_count": self.count_and_list_available().count,
            "book_overdue_count": self.count_and_list_overdue(today).count,
            "author_count": self.count_and_list_authors().count,
            "genre_count": self.count_and_list_genres().count,
        }

    # ------------------------- Mutations ------------------------- #
    def add_book(self, title: str, author: str, genre: str) -> Book:
        """Append a new book with empty loan fields.

        Duplicates are not rejected here; use :meth:`add_book_if_absent`
        for an atomic check-and-add.
        """
        with self._lock:
            if self._index_of(title) != -1:
                logger.warning(f"Adding '{title}' although a book with that title already exists")
            book = Book(title=title, author=author, genre=genre)
            self.books.append(book)
            logger.info(f"Book '{title}' added to the catalog")
            self._persist()
            return book.copy()

    def add_book_if_absent(self, title: str, author: str, genre: str) -> Optional[Book]:
        with self._lock:
            if self.title_exists(title):
                logger.info(f"Book '{title}' already exists, not added")
                return None
            return self.add_book(title, author, genre)

    def delete_book(self, title: str) -> bool:
        with self._lock:
            index = self._index_of(title)
            if index == -1:
                logger.info(f"Book '{title}' not found, nothing deleted")
                return False
            removed = self.books.pop(index)
            logger.info(f"Book '{removed.title}' deleted from the catalog")
            self._persist()
            return True

    def update_book(self, old_title: str, new_title: str, author: str, genre: str) -> Optional[Book]:
        """Overwrite title, author and genre. Loan fields are left alone."""
        with self._lock:
            book = self._find(old_title)
            if book is None:
                logger.info(f"Book '{old_title}' not found, nothing updated")
                return None
            book.title = str(new_title)
            book.author = author
            book.genre = genre
            logger.info(f"Book '{old_title}' updated as '{new_title}'")
            self._persist()
            return book.copy()

    def checkout(self, title: str, issue_date: str, due_date: Optional[str], reader: str) -> bool:
        """Record a loan without checking availability.

        Callers must make sure the book is not held by someone else, or
        use :meth:`take_book`. An empty ``due_date`` is derived from
        ``issue_date`` with the library's loan period.
        """
        with self._lock:
            book = self._find(title)
            if book is None:
                logger.info(f"Book '{title}' not found, checkout ignored")
                return False
            due = due_date or due_date_for(issue_date)
            if not due:
                logger.warning(f"Book '{book.title}' checked out with unreadable issue date '{issue_date}', no due date set")
            book.set_loan(issue_date, due, reader)
            logger.info(f"Book '{book.title}' checked out by {reader} until {book.due_date}")
            self._persist()
            return True

    def take_book(self, title: str, reader: str, issue_date: Optional[str] = None) -> TakeResult:
        """Check a book out to ``reader`` only if nobody holds it."""
        with self._lock:
            book = self._find(title)
            if book is None:
                return TakeResult(TakeOutcome.NOT_FOUND)
            if book.is_on_loan:
                logger.info(f"Book '{book.title}' is already held by {book.reader}")
                return TakeResult(TakeOutcome.UNAVAILABLE, book.copy())
            self.checkout(book.title, issue_date or today_iso(self.today()), None, reader)
            return TakeResult(TakeOutcome.TAKEN, book.copy())

    def return_book(self, title: str) -> bool:
        with self._lock:
            book = self._find(title)
            if book is None:
                logger.info(f"Book '{title}' not found, return ignored")
                return False
            if not book.is_on_loan:
                logger.info(f"Book '{book.title}' is not checked out, return ignored")
                return False
            book.clear_loan()
            logger.info(f"Book '{book.title}' returned")
            self._persist()
            return True

    # ------------------------- Persistence ------------------------- #
    def _persist(self) -> None:
        self._writer.schedule(self.books)

    @property
    def write_failures(self) -> int:
        return self._writer.failures

    def flush(self, timeout: Optional[float] = None) -> None:
        """Wait until every scheduled rewrite of the data file has finished."""
        self._writer.flush(timeout)

    def close(self) -> None:
        self._writer.close()
