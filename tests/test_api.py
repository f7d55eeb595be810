import pytest
from fastapi.testclient import TestClient

from home_library.api import create_app


@pytest.fixture
def client(seeded):
    with TestClient(create_app(seeded)) as test_client:
        yield test_client


@pytest.fixture
def empty_client(lib):
    with TestClient(create_app(lib)) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["total_books"] == 4


def test_catalog_index(client):
    data = client.get("/catalog").json()
    assert data["book_count"] == 4
    assert data["book_available_count"] == 2
    assert data["book_overdue_count"] == 1
    assert data["author_count"] == 3
    assert data["genre_count"] == 3


def test_book_lists(client):
    assert client.get("/books").json() == {"count": 4, "items": ["Dune", "Emma", "Persuasion", "Hyperion"]}
    assert client.get("/books/available").json()["items"] == ["Dune", "Hyperion"]
    assert client.get("/books/overdue").json() == {"count": 1, "items": ["Emma"]}


def test_book_detail(client):
    response = client.get("/books/emma")
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Emma"
    assert data["reader"] == "bob"
    assert data["overdue"] is True


def test_book_detail_not_found(client):
    assert client.get("/books/Missing").status_code == 404


def test_create_book(empty_client, lib):
    response = empty_client.post("/books", json={"title": "  Dune ", "author": "Frank Herbert", "genre": "SF"})
    assert response.status_code == 201
    assert response.json()["title"] == "Dune"
    assert response.json()["reader"] == ""
    assert lib.get_book_details("dune").found


def test_create_book_escapes_markup(empty_client):
    response = empty_client.post("/books", json={"title": "Tom & Jerry", "author": "<b>A</b>", "genre": "Comics"})
    assert response.status_code == 201
    assert response.json()["title"] == "Tom &amp; Jerry"
    assert response.json()["author"] == "&lt;b&gt;A&lt;/b&gt;"
    assert empty_client.get("/books/Tom%20%26amp%3B%20Jerry").status_code == 200
    assert empty_client.get("/books/Tom%20%26%20Jerry").status_code == 404


def test_percent_sign_in_title_is_kept(empty_client):
    response = empty_client.post("/books", json={"title": "Rock%20Roll", "author": "Band", "genre": "Music"})
    assert response.status_code == 201
    assert empty_client.get("/books/Rock%2520Roll").json()["title"] == "Rock%20Roll"
    assert empty_client.get("/books/Rock%20Roll").status_code == 404


def test_create_book_validation(empty_client):
    response = empty_client.post("/books", json={"title": " ", "author": "", "genre": "SF"})
    assert response.status_code == 422
    errors = response.json()["detail"]["errors"]
    assert "Title must not be empty" in errors
    assert "Author must not be empty" in errors


def test_create_duplicate_title(client):
    response = client.post("/books", json={"title": "DUNE", "author": "x", "genre": "y"})
    assert response.status_code == 409
    assert client.get("/books").json()["count"] == 4


def test_update_book(client):
    response = client.put("/books/emma", json={"title": "Emma", "author": "J. Austen", "genre": "Romance"})
    assert response.status_code == 200
    data = response.json()
    assert data["author"] == "J. Austen"
    assert data["reader"] == "bob"


def test_update_book_recase_own_title(client):
    response = client.put("/books/dune", json={"title": "DUNE", "author": "Frank Herbert", "genre": "SF"})
    assert response.status_code == 200
    assert client.get("/books").json()["items"][0] == "DUNE"


def test_update_book_to_taken_title(client):
    response = client.put("/books/dune", json={"title": "emma", "author": "x", "genre": "y"})
    assert response.status_code == 409


def test_update_missing_book(client):
    response = client.put("/books/Missing", json={"title": "A", "author": "B", "genre": "C"})
    assert response.status_code == 404


def test_delete_book(client):
    assert client.delete("/books/dune").status_code == 204
    assert client.get("/books/Dune").status_code == 404
    assert client.delete("/books/dune").status_code == 404


def test_take_and_return(client, seeded):
    response = client.post("/books/dune/take", json={"reader": "alice"})
    assert response.status_code == 200
    data = response.json()
    assert data["reader"] == "alice"
    assert data["issue_date"] == "2024-03-15"
    assert data["due_date"] == "2024-05-31"

    again = client.post("/books/dune/take", json={"reader": "bob"})
    assert again.status_code == 409
    assert seeded.get_book_details("dune").book.reader == "alice"

    returned = client.post("/books/dune/return")
    assert returned.status_code == 200
    assert returned.json()["reader"] == ""
    assert client.post("/books/dune/return").status_code == 200


def test_take_requires_reader(client):
    assert client.post("/books/dune/take", json={"reader": "  "}).status_code == 422
    assert client.post("/books/dune/take").status_code == 422


def test_take_missing_book(client):
    assert client.post("/books/Missing/take", json={"reader": "alice"}).status_code == 404
    assert client.post("/books/Missing/return").status_code == 404


def test_authors(client):
    assert client.get("/authors").json()["items"] == ["Frank Herbert", "Jane Austen", "Dan Simmons"]
    response = client.get("/authors/jane austen")
    assert response.status_code == 200
    assert response.json() == {"name": "jane austen", "titles": ["Emma", "Persuasion"]}
    assert client.get("/authors/Nobody").status_code == 404


def test_genres(client):
    assert client.get("/genres").json()["count"] == 3
    response = client.get("/genres/science%20fiction")
    assert response.status_code == 200
    assert response.json()["titles"] == ["Dune", "Hyperion"]
    assert client.get("/genres/Poetry").status_code == 404


def test_changes_reach_data_file(client, seeded, seeded_file):
    client.post("/books", json={"title": "Solaris", "author": "Stanislaw Lem", "genre": "SF"})
    seeded.flush()
    assert "Solaris" in seeded_file.read_text(encoding="utf-8")
