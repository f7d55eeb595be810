"""Home Library - catalog application package

This package contains the core application modules including:
- Catalog store (catalog.py)
- Book record and loan rules (book.py, loans.py)
- Named query results (results.py)
- JSON persistence and write-back (storage.py)
- API endpoints (api.py)
- CLI interface (main.py)
"""

__version__ = "1.0.0"
