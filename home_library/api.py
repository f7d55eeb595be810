import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from home_library.book import Book
from home_library.catalog import Catalog
from home_library.config import settings
from home_library.results import CountedList, GroupedTitles, TakeOutcome
from home_library.validators import (
    BOOK_UNAVAILABLE,
    DUPLICATE_TITLE,
    clean_book_form,
    clean_reader,
)

logger = logging.getLogger(__name__)


# --- Models ---
class BookModel(BaseModel):
    title: str
    author: str
    genre: str
    issue_date: str = ""
    due_date: str = ""
    reader: str = ""
    overdue: bool = False


class BookFormModel(BaseModel):
    title: Optional[str] = Field(default=None, description="Book title, unique regardless of case")
    author: Optional[str] = None
    genre: Optional[str] = None


class TakeModel(BaseModel):
    reader: Optional[str] = Field(default=None, description="Name of the person taking the book")


class CountedListModel(BaseModel):
    count: int
    items: List[str]


class GroupModel(BaseModel):
    name: str
    titles: List[str]


class CatalogIndexModel(BaseModel):
    title: str
    book_count: int
    book_available_count: int
    book_overdue_count: int
    author_count: int
    genre_count: int


# --- Helpers ---
def get_catalog(request: Request) -> Catalog:
    """Dependency returning the catalog owned by the running app."""
    return request.app.state.catalog


def _book_model(book: Book, catalog: Catalog) -> BookModel:
    return BookModel(**book.to_dict(), overdue=book.is_overdue(catalog.today()))


def _counted(result: CountedList) -> CountedListModel:
    return CountedListModel(count=result.count, items=result.items)


def _group_or_404(result: GroupedTitles, what: str) -> GroupModel:
    if result.is_empty:
        raise HTTPException(status_code=404, detail=f"{what} not found")
    return GroupModel(name=result.name, titles=result.titles)


def _form_errors(errors: List[str]) -> HTTPException:
    return HTTPException(status_code=422, detail={"errors": errors})


def _require_book(catalog: Catalog, title: str) -> Book:
    lookup = catalog.get_book_details(title)
    if not lookup.found:
        raise HTTPException(status_code=404, detail="Book not found")
    return lookup.book


def create_app(catalog: Optional[Catalog] = None) -> FastAPI:
    """Build the API around ``catalog``, or around a catalog opened from settings at startup."""
    logging.basicConfig(level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = catalog is None
        app.state.catalog = catalog if catalog is not None else Catalog(settings.data_file)
        logger.info(f"Serving catalog from {app.state.catalog.data_file}")
        try:
            yield
        finally:
            # Let pending write-backs reach the disk before shutting down
            if owned:
                app.state.catalog.close()
            else:
                app.state.catalog.flush()

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    if catalog is not None:
        app.state.catalog = catalog

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Health Check ---
    @app.get("/health")
    def health(catalog: Catalog = Depends(get_catalog)):
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "total_books": len(catalog),
        }

    # --- Catalog index ---
    @app.get("/catalog", response_model=CatalogIndexModel)
    def catalog_index(catalog: Catalog = Depends(get_catalog)):
        return CatalogIndexModel(title=settings.app_name, **catalog.get_statistics())

    # --- Books ---
    @app.get("/books", response_model=CountedListModel)
    def book_list(catalog: Catalog = Depends(get_catalog)):
        return _counted(catalog.count_and_list_books())

    @app.get("/books/available", response_model=CountedListModel)
    def available_books(catalog: Catalog = Depends(get_catalog)):
        return _counted(catalog.count_and_list_available())

    @app.get("/books/overdue", response_model=CountedListModel)
    def overdue_books(catalog: Catalog = Depends(get_catalog)):
        return _counted(catalog.count_and_list_overdue())

    @app.get("/books/{title}", response_model=BookModel)
    def book_detail(title: str, catalog: Catalog = Depends(get_catalog)):
        return _book_model(_require_book(catalog, title), catalog)

    @app.post("/books", response_model=BookModel, status_code=201)
    def book_create(payload: BookFormModel, catalog: Catalog = Depends(get_catalog)):
        form, errors = clean_book_form(payload.title, payload.author, payload.genre)
        if errors:
            raise _form_errors(errors)
        book = catalog.add_book_if_absent(form["title"], form["author"], form["genre"])
        if book is None:
            raise HTTPException(status_code=409, detail={"errors": [DUPLICATE_TITLE]})
        return _book_model(book, catalog)

    @app.put("/books/{title}", response_model=BookModel)
    def book_update(title: str, payload: BookFormModel, catalog: Catalog = Depends(get_catalog)):
        current = _require_book(catalog, title)
        form, errors = clean_book_form(payload.title, payload.author, payload.genre)
        if errors:
            raise _form_errors(errors)
        if catalog.title_exists(form["title"], exclude=current.title):
            raise HTTPException(status_code=409, detail={"errors": [DUPLICATE_TITLE]})
        updated = catalog.update_book(current.title, form["title"], form["author"], form["genre"])
        if updated is None:
            raise HTTPException(status_code=404, detail="Book not found")
        return _book_model(updated, catalog)

    @app.delete("/books/{title}", status_code=204)
    def book_delete(title: str, catalog: Catalog = Depends(get_catalog)):
        book = _require_book(catalog, title)
        catalog.delete_book(book.title)
        return Response(status_code=204)

    @app.post("/books/{title}/take", response_model=BookModel)
    def book_take(title: str, payload: Optional[TakeModel] = Body(default=None),
                  catalog: Catalog = Depends(get_catalog)):
        _require_book(catalog, title)
        reader, errors = clean_reader(payload.reader if payload else None)
        if errors:
            raise _form_errors(errors)
        result = catalog.take_book(title, reader)
        if result.outcome is TakeOutcome.NOT_FOUND:
            raise HTTPException(status_code=404, detail="Book not found")
        if result.outcome is TakeOutcome.UNAVAILABLE:
            raise HTTPException(status_code=409, detail={"errors": [BOOK_UNAVAILABLE]})
        return _book_model(result.book, catalog)

    @app.post("/books/{title}/return", response_model=BookModel)
    def book_return(title: str, catalog: Catalog = Depends(get_catalog)):
        book = _require_book(catalog, title)
        catalog.return_book(book.title)
        return _book_model(_require_book(catalog, book.title), catalog)

    # --- Authors ---
    @app.get("/authors", response_model=CountedListModel)
    def author_list(catalog: Catalog = Depends(get_catalog)):
        return _counted(catalog.count_and_list_authors())

    @app.get("/authors/{name}", response_model=GroupModel)
    def author_detail(name: str, catalog: Catalog = Depends(get_catalog)):
        return _group_or_404(catalog.get_books_by_author(name), "Author")

    # --- Genres ---
    @app.get("/genres", response_model=CountedListModel)
    def genre_list(catalog: Catalog = Depends(get_catalog)):
        return _counted(catalog.count_and_list_genres())

    @app.get("/genres/{name}", response_model=GroupModel)
    def genre_detail(name: str, catalog: Catalog = Depends(get_catalog)):
        return _group_or_404(catalog.get_books_by_genre(name), "Genre")

    return app


app = create_app()
