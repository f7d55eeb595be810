"""Named result records returned by catalog queries."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from home_library.book import Book


@dataclass(frozen=True)
class CountedList:
    """A count together with the names it counts."""
    count: int
    items: List[str] = field(default_factory=list)

    @classmethod
    def of(cls, items: List[str]) -> "CountedList":
        return cls(count=len(items), items=list(items))


@dataclass(frozen=True)
class GroupedTitles:
    """Titles sharing an author or a genre.

    ``name`` is the normalized lookup key, or None when no key was given.
    """
    name: Optional[str]
    titles: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.name is None or not self.titles


@dataclass(frozen=True)
class Found:
    book: Book
    found: bool = True

    def __bool__(self) -> bool:
        return True


class _NotFound:
    """Sentinel for a title lookup without a match."""
    found = False
    book = None

    _instance: Optional["_NotFound"] = None

    def __new__(cls) -> "_NotFound":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()

BookLookup = Union[Found, _NotFound]


class TakeOutcome(str, Enum):
    TAKEN = "taken"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class TakeResult:
    outcome: TakeOutcome
    book: Optional[Book] = None

    @property
    def ok(self) -> bool:
        return self.outcome is TakeOutcome.TAKEN
