import json
from datetime import date

import pytest

from home_library.catalog import Catalog

FIXED_TODAY = date(2024, 3, 15)

SAMPLE_BOOKS = [
    {"title": "Dune", "author": "Frank Herbert", "issue_date": "", "due_date": "", "reader": "", "genre": "Science Fiction"},
    {"title": "Emma", "author": "Jane Austen", "issue_date": "2024-01-10", "due_date": "2024-03-01", "reader": "bob", "genre": "Classic"},
    {"title": "Persuasion", "author": "Jane Austen", "issue_date": "2024-02-20", "due_date": "2024-03-20", "reader": "carol", "genre": "classic"},
    {"title": "Hyperion", "author": "Dan Simmons", "issue_date": "", "due_date": "", "reader": "", "genre": "Science Fiction"},
]


@pytest.fixture
def data_file(tmp_path):
    # Each test gets its own library file
    return tmp_path / "library.json"


@pytest.fixture
def seeded_file(data_file):
    data_file.write_text(json.dumps(SAMPLE_BOOKS, indent=2), encoding="utf-8")
    return data_file


@pytest.fixture
def lib(data_file):
    catalog = Catalog(str(data_file), clock=lambda: FIXED_TODAY)
    yield catalog
    catalog.close()


@pytest.fixture
def seeded(seeded_file):
    catalog = Catalog(str(seeded_file), clock=lambda: FIXED_TODAY)
    yield catalog
    catalog.close()
