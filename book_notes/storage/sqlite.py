import logging
import sqlite3
from threading import RLock
from typing import List, Optional

from book_notes.book import Book
from book_notes.exceptions import RatingConstraintError, StoreError
from book_notes.storage.base import RATING_NOT_A_NUMBER, RATING_OUT_OF_RANGE, BookStore, is_storable_id

logger = logging.getLogger(__name__)

SCHEMA = """
    CREATE TABLE IF NOT EXISTS books (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        author TEXT NOT NULL,
        rating INTEGER NOT NULL,
        cover_identifier TEXT,
        notes TEXT,
        CONSTRAINT rating_is_integer CHECK (typeof(rating) = 'integer'),
        CONSTRAINT rating_range CHECK (rating >= 1 AND rating <= 5)
    )
"""

COLUMNS = "id, title, author, rating, cover_identifier, notes"


class SQLiteBookStore(BookStore):
    """Books kept in a single SQLite table.

    One connection is held between open() and close(). Requests share it,
    so every statement runs under a lock.
    """

    name = "sqlite"

    def __init__(self, path: str) -> None:
        super().__init__(path)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = RLock()

    def open(self) -> None:
        if self._conn is not None:
            return
        try:
            conn = sqlite3.connect(self.path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute(SCHEMA)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_books_title ON books(title)")
            conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not open database {self.path}: {exc}") from exc
        self._conn = conn
        logger.info("Opened SQLite store at %s", self.path)

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.info("Closed SQLite store at %s", self.path)

    # ------------------------- Queries ------------------------- #
    def list_books(self) -> List[Book]:
        with self._lock:
            rows = self._execute(f"SELECT {COLUMNS} FROM books ORDER BY id").fetchall()
        return [Book.from_dict(row) for row in rows]

    def get_book(self, book_id: int) -> Optional[Book]:
        if not is_storable_id(book_id):
            return None
        with self._lock:
            row = self._execute(f"SELECT {COLUMNS} FROM books WHERE id = ?", (book_id,)).fetchone()
        return Book.from_dict(row) if row else None

    def count(self) -> int:
        with self._lock:
            return self._execute("SELECT COUNT(*) FROM books").fetchone()[0]

    # ------------------------- Writes ------------------------- #
    def insert_book(self, book: Book) -> Book:
        cursor = self._execute(
            "INSERT INTO books (title, author, rating, cover_identifier, notes) VALUES (?, ?, ?, ?, ?)",
            (book.title, book.author, book.rating, book.cover_identifier, book.notes),
            commit=True,
        )
        stored = Book.from_dict(book.to_dict())
        stored.id = cursor.lastrowid
        return stored

    def update_book(self, book_id: int, book: Book) -> bool:
        if not is_storable_id(book_id):
            return False
        cursor = self._execute(
            "UPDATE books SET title = ?, author = ?, rating = ?, cover_identifier = ?, notes = ? WHERE id = ?",
            (book.title, book.author, book.rating, book.cover_identifier, book.notes, book_id),
            commit=True,
        )
        return cursor.rowcount > 0

    def delete_book(self, book_id: int) -> bool:
        if not is_storable_id(book_id):
            return False
        cursor = self._execute("DELETE FROM books WHERE id = ?", (book_id,), commit=True)
        return cursor.rowcount > 0

    # ------------------------- Helpers ------------------------- #
    def _execute(self, sql: str, params: tuple = (), commit: bool = False) -> sqlite3.Cursor:
        with self._lock:
            if self._conn is None:
                raise StoreError("SQLite store is not open")
            try:
                cursor = self._conn.execute(sql, params)
                if commit:
                    self._conn.commit()
                return cursor
            except sqlite3.IntegrityError as exc:
                self._conn.rollback()
                raise _translate_integrity_error(exc) from exc
            except sqlite3.Error as exc:
                self._conn.rollback()
                raise StoreError(str(exc)) from exc


def _translate_integrity_error(exc: sqlite3.IntegrityError) -> StoreError:
    message = str(exc)
    if "CHECK constraint failed" not in message:
        return StoreError(message)
    if "rating_is_integer" in message:
        return RatingConstraintError(RATING_NOT_A_NUMBER)
    return RatingConstraintError(RATING_OUT_OF_RANGE)
