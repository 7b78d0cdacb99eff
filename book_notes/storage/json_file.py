import json
import logging
import os
import tempfile
from threading import Lock
from typing import Any, Dict, List, Optional

from book_notes.book import Book
from book_notes.exceptions import StoreError
from book_notes.storage.base import BookStore, check_rating

logger = logging.getLogger(__name__)


class JsonFileBookStore(BookStore):
    """Books kept as a JSON list in a single file.

    Ids are assigned locally as one past the highest id in the file. Writers
    within this process are serialized; separate processes writing the same
    file are not coordinated and the last write wins.
    """

    name = "json"

    def __init__(self, path: str) -> None:
        super().__init__(path)
        self._lock = Lock()
        self._opened = False

    def open(self) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"Could not open {self.path}: {exc}") from exc
        if not os.path.exists(self.path):
            self._write([])
        self._opened = True
        try:
            self._read()
        except StoreError:
            self._opened = False
            raise
        logger.info("Opened JSON store at %s", self.path)

    def close(self) -> None:
        if self._opened:
            self._opened = False
            logger.info("Closed JSON store at %s", self.path)

    def list_books(self) -> List[Book]:
        return [Book.from_dict(record) for record in self._read()]

    def get_book(self, book_id: int) -> Optional[Book]:
        for record in self._read():
            if record.get("id") == book_id:
                return Book.from_dict(record)
        return None

    def insert_book(self, book: Book) -> Book:
        check_rating(book.rating)
        with self._lock:
            records = self._read()
            record = book.to_dict()
            record["id"] = max((r.get("id") or 0 for r in records), default=0) + 1
            records.append(record)
            self._write(records)
        return Book.from_dict(record)

    def update_book(self, book_id: int, book: Book) -> bool:
        check_rating(book.rating)
        with self._lock:
            records = self._read()
            for index, record in enumerate(records):
                if record.get("id") == book_id:
                    updated = book.to_dict()
                    updated["id"] = book_id
                    records[index] = updated
                    self._write(records)
                    return True
        return False

    def delete_book(self, book_id: int) -> bool:
        with self._lock:
            records = self._read()
            remaining = [r for r in records if r.get("id") != book_id]
            if len(remaining) == len(records):
                return False
            self._write(remaining)
        return True

    # ------------------------- File access ------------------------- #
    def _read(self) -> List[Dict[str, Any]]:
        if not self._opened:
            raise StoreError("JSON store is not open")
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except (json.JSONDecodeError, OSError) as exc:
            raise StoreError(f"Error reading {self.path}: {exc}") from exc
        if not isinstance(data, list):
            raise StoreError(f"{self.path} does not contain a list of books")
        return data

    def _write(self, records: List[Dict[str, Any]]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".books-", suffix=".json")
        except OSError as exc:
            raise StoreError(f"Error writing {self.path}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StoreError(f"Error writing {self.path}: {exc}") from exc
