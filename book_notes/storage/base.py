from abc import ABC, abstractmethod
from typing import List, Optional

from book_notes.book import Book
from book_notes.exceptions import RatingConstraintError

RATING_OUT_OF_RANGE = "Rating must be between 1 and 5."
RATING_NOT_A_NUMBER = "Rating must be a valid number."
# SQLite INTEGER PRIMARY KEY is a signed 64-bit value
MAX_BOOK_ID = 2 ** 63 - 1


class BookStore(ABC):
    """Persistence interface shared by every backend.

    Stores are opened once at startup and closed at shutdown. Records come
    back in storage order (ascending id).
    """

    name = "abstract"

    def __init__(self, path: str) -> None:
        self.path = path

    @abstractmethod
    def open(self) -> None:
        """Create the backing table or file if needed and acquire resources."""

    @abstractmethod
    def close(self) -> None:
        ...

    @abstractmethod
    def list_books(self) -> List[Book]:
        ...

    @abstractmethod
    def get_book(self, book_id: int) -> Optional[Book]:
        ...

    @abstractmethod
    def insert_book(self, book: Book) -> Book:
        """Persist a new record and return it with its assigned id."""

    @abstractmethod
    def update_book(self, book_id: int, book: Book) -> bool:
        """Overwrite every field of a record. Returns False if it does not exist."""

    @abstractmethod
    def delete_book(self, book_id: int) -> bool:
        """Remove a record. Returns False if it did not exist."""

    def count(self) -> int:
        return len(self.list_books())

    def __enter__(self) -> "BookStore":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def check_rating(rating) -> None:
    """Storage-level rating rule, mirrored by the SQLite CHECK constraints."""
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise RatingConstraintError(RATING_NOT_A_NUMBER)
    if not 1 <= rating <= 5:
        raise RatingConstraintError(RATING_OUT_OF_RANGE)


def is_storable_id(book_id) -> bool:
    return isinstance(book_id, int) and -MAX_BOOK_ID - 1 <= book_id <= MAX_BOOK_ID
