import html
from typing import Dict, List, Optional, Tuple

# Error messages shown next to the book and take forms
TITLE_REQUIRED = "Title must not be empty"
AUTHOR_REQUIRED = "Author must not be empty"
GENRE_REQUIRED = "Genre must not be empty"
READER_REQUIRED = "Reader name must not be empty"
DUPLICATE_TITLE = "A book with this title already exists in the library"
BOOK_UNAVAILABLE = "The book is held by another reader. Choose another one"


class TextValidator:
    """Trimming, escaping and required-field checks for form input."""

    @staticmethod
    def sanitize_text(text: Optional[str]) -> str:
        if text is None:
            return ""
        # Trim, then escape HTML special characters
        return html.escape(str(text).strip(), quote=True)

    @staticmethod
    def is_present(text: Optional[str]) -> bool:
        return bool(TextValidator.sanitize_text(text))


def clean_book_form(title: Optional[str], author: Optional[str],
                    genre: Optional[str]) -> Tuple[Dict[str, str], List[str]]:
    """Sanitize the book form and collect messages for missing fields."""
    cleaned = {
        "title": TextValidator.sanitize_text(title),
        "author": TextValidator.sanitize_text(author),
        "genre": TextValidator.sanitize_text(genre),
    }
    errors: List[str] = []
    if not cleaned["title"]:
        errors.append(TITLE_REQUIRED)
    if not cleaned["author"]:
        errors.append(AUTHOR_REQUIRED)
    if not cleaned["genre"]:
        errors.append(GENRE_REQUIRED)
    return cleaned, errors


def clean_reader(reader: Optional[str]) -> Tuple[str, List[str]]:
    cleaned = TextValidator.sanitize_text(reader)
    return cleaned, ([] if cleaned else [READER_REQUIRED])
