"""JSON persistence for the catalog.

The whole collection lives in one JSON array on disk. It is read once when
the catalog starts and rewritten in full after every mutation. Rewrites run
on a single background worker so callers never wait for the disk; a failed
write is logged and the in-memory catalog stays authoritative.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Union

from home_library.book import Book

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


class CatalogLoadError(ValueError):
    """Raised when the data file exists but does not hold a list of book records."""


def load_books(path: PathLike) -> List[Book]:
    """Read every record from ``path``. A missing file is an empty catalog."""
    path = Path(path)
    if not path.exists():
        logger.info(f"Data file {path} does not exist yet, starting with an empty catalog")
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as exc:
        raise CatalogLoadError(f"{path} is not valid JSON: {exc}") from exc

    if not isinstance(raw, list):
        raise CatalogLoadError(f"{path} must contain a JSON array of books")
    books: List[Book] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict) or "title" not in item:
            raise CatalogLoadError(f"{path}: entry {index} is not a book record")
        books.append(Book.from_dict(item))
    logger.info(f"Loaded {len(books)} books from {path}")
    return books


def dump_books(books: List[Book]) -> str:
    """Serialize records as indented, human-readable JSON."""
    return json.dumps([book.to_dict() for book in books], ensure_ascii=False, indent=2)


def write_text_atomic(path: PathLike, text: str) -> None:
    """Write ``text`` to a sibling temp file and move it over ``path``."""
    path = Path(path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        f.write(text)
    os.replace(tmp_path, path)


class WriteBack:
    """Schedules full rewrites of the data file.

    ``schedule`` serializes the snapshot immediately and queues the disk
    write. A single worker thread runs the writes in the order they were
    scheduled. With ``sync=True`` the write happens before ``schedule``
    returns; failures are still only logged.
    """

    def __init__(self, path: PathLike, sync: bool = False) -> None:
        self.path = Path(path)
        self.sync = sync
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: List[Future] = []
        self._lock = threading.Lock()
        self.failures = 0

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="catalog-writeback")
        return self._executor

    def schedule(self, books: List[Book]) -> Optional[Future]:
        """Queue a rewrite of the data file with ``books``; returns the pending write, if any."""
        text = dump_books(books)
        if self.sync:
            self._write(text, len(books))
            return None
        with self._lock:
            future = self._get_executor().submit(self._write, text, len(books))
            self._pending.append(future)
        future.add_done_callback(self._forget)
        return future

    def _write(self, text: str, count: int) -> None:
        try:
            write_text_atomic(self.path, text)
        except OSError:
            with self._lock:
                self.failures += 1
            logger.exception(f"Failed to write {count} books to {self.path}")
            return
        logger.debug(f"Wrote {count} books to {self.path}")

    def _forget(self, future: Future) -> None:
        with self._lock:
            if future in self._pending:
                self._pending.remove(future)

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def flush(self, timeout: Optional[float] = None) -> None:
        """Block until every write scheduled so far has finished."""
        with self._lock:
            pending = list(self._pending)
        for future in pending:
            future.result(timeout=timeout)

    def close(self) -> None:
        self.flush()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
