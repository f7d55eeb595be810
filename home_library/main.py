import logging
import os
import subprocess
import sys
import webbrowser
from typing import Optional

import typer

from home_library.catalog import Catalog
from home_library.config import settings
from home_library.results import TakeOutcome
from home_library.storage import CatalogLoadError
from home_library.ui_helpers import print_book, print_names, print_stats_result, set_output_mode
from home_library.validators import (
    BOOK_UNAVAILABLE,
    DUPLICATE_TITLE,
    clean_book_form,
    clean_reader,
)

APP_NAME = "Home Library CLI"

app = typer.Typer(help=APP_NAME, no_args_is_help=True)


class CatalogHandle:
    """Opens the catalog on first use and closes it when the command ends."""

    def __init__(self, data_file: str) -> None:
        self.data_file = data_file
        self._catalog: Optional[Catalog] = None

    def get(self) -> Catalog:
        if self._catalog is None:
            try:
                self._catalog = Catalog(self.data_file)
            except CatalogLoadError as e:
                print(f"Error: {e}")
                raise typer.Exit(code=1)
        return self._catalog

    def close(self) -> None:
        if self._catalog is not None:
            self._catalog.close()
            self._catalog = None


def _catalog(ctx: typer.Context) -> Catalog:
    return ctx.obj.get()


@app.callback()
def _global_options(
    ctx: typer.Context,
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    data_file: Optional[str] = typer.Option(
        None,
        "--data-file",
        "-f",
        help="Path of the library JSON file (default: LIBRARY_DATA_FILE or library.json)",
    ),
):
    """Global options for the CLI (output mode, data file)."""
    logging.basicConfig(level=settings.log_level)
    if output:
        set_output_mode(output)
    handle = CatalogHandle(data_file or settings.data_file)
    ctx.obj = handle
    ctx.call_on_close(handle.close)


# --- Queries ---
@app.command("list")
def cli_list(ctx: typer.Context):
    """List all book titles."""
    result = _catalog(ctx).count_and_list_books()
    print_names("Books", result.count, result.items, "No books in library.")


@app.command("available")
def cli_available(ctx: typer.Context):
    """List books nobody is holding."""
    result = _catalog(ctx).count_and_list_available()
    print_names("Available books", result.count, result.items, "No available books.")


@app.command("overdue")
def cli_overdue(ctx: typer.Context):
    """List books past their due date."""
    result = _catalog(ctx).count_and_list_overdue()
    print_names("Overdue books", result.count, result.items, "No overdue books.")


@app.command("authors")
def cli_authors(ctx: typer.Context):
    """List distinct authors."""
    result = _catalog(ctx).count_and_list_authors()
    print_names("Authors", result.count, result.items, "No authors in library.")


@app.command("genres")
def cli_genres(ctx: typer.Context):
    """List distinct genres."""
    result = _catalog(ctx).count_and_list_genres()
    print_names("Genres", result.count, result.items, "No genres in library.")


@app.command("author")
def cli_author(ctx: typer.Context, name: str):
    """List the books of one author (case-insensitive)."""
    group = _catalog(ctx).get_books_by_author(name)
    if group.is_empty:
        print(f"Author {name} not found.")
        raise typer.Exit(code=1)
    print_names(group.name, len(group.titles), group.titles)


@app.command("genre")
def cli_genre(ctx: typer.Context, name: str):
    """List the books of one genre (case-insensitive)."""
    group = _catalog(ctx).get_books_by_genre(name)
    if group.is_empty:
        print(f"Genre {name} not found.")
        raise typer.Exit(code=1)
    print_names(group.name, len(group.titles), group.titles)


@app.command("show")
def cli_show(ctx: typer.Context, title: str):
    """Show the details of a book."""
    catalog = _catalog(ctx)
    lookup = catalog.get_book_details(title)
    if not lookup.found:
        print(f"Book {title} not found.")
        raise typer.Exit(code=1)
    print_book(lookup.book, overdue=lookup.book.is_overdue(catalog.today()))


@app.command("stats")
def cli_stats(ctx: typer.Context):
    """Show catalog counts."""
    print_stats_result(_catalog(ctx).get_statistics())


# --- Mutations ---
def _fail(errors) -> None:
    for message in errors:
        print(f"Error: {message}")
    raise typer.Exit(code=1)


@app.command("add")
def cli_add(ctx: typer.Context, title: str, author: str, genre: str):
    """Add a new book."""
    form, errors = clean_book_form(title, author, genre)
    if errors:
        _fail(errors)
    book = _catalog(ctx).add_book_if_absent(form["title"], form["author"], form["genre"])
    if book is None:
        _fail([DUPLICATE_TITLE])
    print(f"Successfully added: {book.title} by {book.author}")


@app.command("update")
def cli_update(
    ctx: typer.Context,
    old_title: str,
    title: Optional[str] = typer.Option(None, "--title", help="New title"),
    author: Optional[str] = typer.Option(None, "--author", help="New author"),
    genre: Optional[str] = typer.Option(None, "--genre", help="New genre"),
):
    """Change the title, author or genre of a book. Omitted options keep their value."""
    catalog = _catalog(ctx)
    current = catalog.find_book(old_title)
    if current is None:
        print(f"Book {old_title} not found.")
        raise typer.Exit(code=1)
    form, errors = clean_book_form(
        title if title is not None else current.title,
        author if author is not None else current.author,
        genre if genre is not None else current.genre,
    )
    if errors:
        _fail(errors)
    if catalog.title_exists(form["title"], exclude=current.title):
        _fail([DUPLICATE_TITLE])
    book = catalog.update_book(current.title, form["title"], form["author"], form["genre"])
    print(f"Updated: {book.title} by {book.author} ({book.genre})")


@app.command("remove")
def cli_remove(ctx: typer.Context, title: str):
    """Delete a book."""
    if _catalog(ctx).delete_book(title):
        print(f"Book {title} has been removed.")
    else:
        print(f"Book {title} not found.")
        raise typer.Exit(code=1)


@app.command("take")
def cli_take(ctx: typer.Context, title: str, reader: str):
    """Check a book out to a reader."""
    name, errors = clean_reader(reader)
    if errors:
        _fail(errors)
    result = _catalog(ctx).take_book(title, name)
    if result.outcome is TakeOutcome.NOT_FOUND:
        print(f"Book {title} not found.")
        raise typer.Exit(code=1)
    if result.outcome is TakeOutcome.UNAVAILABLE:
        _fail([BOOK_UNAVAILABLE])
    print(f"{result.book.title} taken by {result.book.reader}, due {result.book.due_date}")


@app.command("return")
def cli_return(ctx: typer.Context, title: str):
    """Return a book to the shelf."""
    catalog = _catalog(ctx)
    book = catalog.find_book(title)
    if book is None:
        print(f"Book {title} not found.")
        raise typer.Exit(code=1)
    if catalog.return_book(book.title):
        print(f"{book.title} returned.")
    else:
        print(f"{book.title} is not checked out.")


@app.command("serve")
def cli_serve(
    ctx: typer.Context,
    open_browser: bool = typer.Option(False, "--open", help="Open the API docs in a browser"),
    reload: bool = typer.Option(False, "--reload", help="Restart the server on code changes"),
):
    """Start the HTTP API with uvicorn."""
    host = settings.api_host
    port = int(settings.api_port)
    url = f"http://{host}:{port}/docs"
    print(f"Starting API on http://{host}:{port}/")
    if open_browser:
        try:
            webbrowser.open(url)
        except webbrowser.Error:
            print("Could not open a web browser.")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "home_library.api:app",
        "--host", host,
        "--port", str(port),
    ]
    if reload:
        args.append("--reload")
    env = dict(os.environ, LIBRARY_DATA_FILE=ctx.obj.data_file)
    try:
        subprocess.run(args, env=env)
    except FileNotFoundError:
        print("Error: could not start uvicorn. Make sure it is installed.")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
