from typing import List, Optional


class BookNotesError(Exception):
    """Base class for application errors."""


class BookValidationError(BookNotesError):
    """Raised when submitted book fields fail validation.

    Carries every message found, not just the first one.
    """

    def __init__(self, messages: List[str]) -> None:
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


class StoreError(BookNotesError):
    """Persistence failure in a record store."""


class RatingConstraintError(StoreError):
    """The store refused a rating outside 1-5 or a non-integer rating."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or "Rating must be between 1 and 5.")


class CoverLookupError(BookNotesError):
    """A cover service could not be reached or answered with an error."""
