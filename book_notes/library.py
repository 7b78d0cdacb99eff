import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Mapping, Optional

from book_notes.book import Book
from book_notes.services.covers import CoverResolver, CoverResult
from book_notes.storage.base import BookStore
from book_notes.validators import validate_book_form

logger = logging.getLogger(__name__)


class SortKey(Enum):
    RATING = "rating"
    ALPHABETICAL = "alphabetical"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["SortKey"]:
        """Map a query value to a sort key; unknown values mean storage order."""
        if not raw:
            return None
        try:
            return cls(raw)
        except ValueError:
            return None


@dataclass(frozen=True)
class BookView:
    """A listed book together with its resolved cover."""
    book: Book
    cover: CoverResult

    @property
    def cover_url(self) -> str:
        return self.cover.url


def filter_books(books: Iterable[Book], search: Optional[str]) -> List[Book]:
    """Keep books whose title or author contains ``search``, ignoring case."""
    books = list(books)
    needle = (search or "").strip().lower()
    if not needle:
        return books
    return [b for b in books if needle in b.title.lower() or needle in b.author.lower()]


def sort_books(books: Iterable[Book], sort: Optional[SortKey]) -> List[Book]:
    books = list(books)
    if sort is SortKey.RATING:
        # sorted() is stable, equal ratings keep storage order
        return sorted(books, key=lambda b: b.rating, reverse=True)
    if sort is SortKey.ALPHABETICAL:
        return sorted(books, key=lambda b: b.title)
    return books


class Library:
    """Manages the reading list on top of a record store."""

    def __init__(self, store: BookStore, covers: Optional[CoverResolver] = None) -> None:
        self.store = store
        self.covers = covers or CoverResolver(provider=None)

    # ------------------------- Reads ------------------------- #
    def find_books(self, sort: Optional[str] = None, search: Optional[str] = None) -> List[Book]:
        """Filtered and ordered books, without covers."""
        books = filter_books(self.store.list_books(), search)
        return sort_books(books, SortKey.parse(sort))

    async def list_books(self, sort: Optional[str] = None, search: Optional[str] = None) -> List[BookView]:
        books = self.find_books(sort=sort, search=search)
        covers = await self.covers.resolve_all(books)
        return [BookView(book=book.with_cover(cover.url), cover=cover) for book, cover in zip(books, covers)]

    def get_book(self, book_id: int) -> Optional[Book]:
        return self.store.get_book(book_id)

    def count(self) -> int:
        return self.store.count()

    # ------------------------- Writes ------------------------- #
    def add_book(self, form: Mapping[str, object]) -> Book:
        """Validate submitted fields and store a new book.

        Raises:
            BookValidationError: with every failed rule.
            RatingConstraintError: the store rejected the rating.
        """
        book = validate_book_form(form)
        stored = self.store.insert_book(book)
        logger.info("Added book %s: %s", stored.id, stored.title)
        return stored

    def update_book(self, book_id: int, form: Mapping[str, object]) -> bool:
        """Validate submitted fields and overwrite an existing book.

        Returns False when no book has ``book_id``; nothing is written then.
        """
        book = validate_book_form(form)
        updated = self.store.update_book(book_id, book)
        if updated:
            logger.info("Updated book %s", book_id)
        else:
            logger.warning("Update skipped, book %s does not exist", book_id)
        return updated

    def remove_book(self, book_id: int) -> bool:
        removed = self.store.delete_book(book_id)
        if removed:
            logger.info("Removed book %s", book_id)
        else:
            logger.info("Nothing to remove for book %s", book_id)
        return removed
