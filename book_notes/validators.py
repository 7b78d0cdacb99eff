import re
from typing import List, Mapping, Optional

from book_notes.book import Book
from book_notes.exceptions import BookValidationError

TITLE_REQUIRED = "Title is required"
AUTHOR_REQUIRED = "Author name is required"
RATING_INVALID = "Rating must be a whole number between 1 & 5"

MIN_RATING = 1
MAX_RATING = 5

_INTEGER = re.compile(r"[+-]?\d+")


class TextValidator:
    """Checks for the free-text fields of the book form."""

    @staticmethod
    def is_present(text: Optional[str]) -> bool:
        return text is not None and bool(str(text).strip())


class RatingValidator:
    """Whole numbers from 1 to 5; numeric strings are accepted."""

    @staticmethod
    def parse(raw) -> Optional[int]:
        """Return the rating as an int, or None when it is not a valid rating."""
        if raw is None or isinstance(raw, bool):
            return None
        if isinstance(raw, int):
            value = raw
        else:
            text = str(raw).strip()
            if not _INTEGER.fullmatch(text):
                return None
            value = int(text)
        if MIN_RATING <= value <= MAX_RATING:
            return value
        return None


def collect_errors(form: Mapping[str, object]) -> List[str]:
    errors = []
    if not TextValidator.is_present(form.get("title")):
        errors.append(TITLE_REQUIRED)
    if not TextValidator.is_present(form.get("author")):
        errors.append(AUTHOR_REQUIRED)
    if RatingValidator.parse(form.get("rating")) is None:
        errors.append(RATING_INVALID)
    return errors


def validate_book_form(form: Mapping[str, object]) -> Book:
    """Validate submitted form fields and build a Book from them.

    All rules are checked before anything is raised, so the caller gets
    every message at once.

    Raises:
        BookValidationError: one or more fields are invalid.
    """
    errors = collect_errors(form)
    if errors:
        raise BookValidationError(errors)
    return Book(
        title=str(form["title"]),
        author=str(form["author"]),
        rating=RatingValidator.parse(form["rating"]),
        cover_identifier=_optional_text(form.get("isbn")),
        notes=_optional_text(form.get("notes")),
    )


def _optional_text(value) -> Optional[str]:
    return None if value is None else str(value)
