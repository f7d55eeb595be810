import json
import os
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from home_library.book import Book

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def print_names(heading: str, count: int, names: List[str], empty_message: str = "Nothing to show.") -> None:
    """Print a counted list of titles, authors or genres.

    - plain: '<heading>: <count>' followed by one name per line
    - json: object with count and items
    - rich: single-column table
    """
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps({"count": count, "items": names}, ensure_ascii=False))
        return
    if not names:
        print(empty_message)
        return
    if mode == "rich":
        table = Table(title=f"📚 {heading} ({count})", header_style="bold cyan")
        table.add_column(heading, style="white")
        for name in names:
            table.add_row(name)
        _console.print(table)
    else:
        print(f"{heading}: {count}")
        for name in names:
            print(f"- {name}")


def print_book(book: Book, overdue: bool = False) -> None:
    mode = get_output_mode()
    data: Dict[str, Any] = book.to_dict()

    if mode == "json":
        print(json.dumps({**data, "overdue": overdue}, ensure_ascii=False))
        return

    lines = [
        f"Title: {book.title}",
        f"Author: {book.author}",
        f"Genre: {book.genre}",
    ]
    if book.is_on_loan:
        lines.append(f"Reader: {book.reader}")
        lines.append(f"Issued: {book.issue_date}")
        lines.append(f"Due: {book.due_date}" + (" (overdue)" if overdue else ""))
    else:
        lines.append("Status: available")

    if mode == "rich":
        _console.print(Panel.fit("\n".join(lines), title="📖 Book", border_style="green"))
    else:
        for line in lines:
            print(line)


def print_stats_result(stats: Optional[Dict[str, int]]) -> None:
    """Print the catalog counts in the current output mode."""
    mode = get_output_mode()

    if not stats:
        print("No statistics available.")
        return

    labels = {
        "book_count": "Books",
        "book_available_count": "Available",
        "book_overdue_count": "Overdue",
        "author_count": "Authors",
        "genre_count": "Genres",
    }
    if mode == "json":
        print(json.dumps(stats, ensure_ascii=False))
    elif mode == "rich":
        content = "\n".join(f"[bold]{labels[k]}:[/] {stats.get(k, 0)}" for k in labels)
        _console.print(Panel.fit(content, title="📊 Stats", border_style="blue"))
    else:
        for key, label in labels.items():
            print(f"{label}: {stats.get(key, 0)}")
