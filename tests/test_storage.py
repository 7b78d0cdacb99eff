import json
import sqlite3

import pytest

from book_notes.book import Book
from book_notes.config import Settings
from book_notes.exceptions import RatingConstraintError, StoreError
from book_notes.storage import JsonFileBookStore, SQLiteBookStore, create_store


def test_insert_assigns_sequential_ids(store):
    first = store.insert_book(Book("Dune", "Frank Herbert", 5))
    second = store.insert_book(Book("Emma", "Jane Austen", 3, cover_identifier="9780141439587"))

    assert first.id is not None
    assert second.id == first.id + 1
    assert store.get_book(second.id).cover_identifier == "9780141439587"


def test_list_returns_storage_order(store):
    for title in ["Zorba", "Alpha", "Middle"]:
        store.insert_book(Book(title, "Someone", 3))
    assert [b.title for b in store.list_books()] == ["Zorba", "Alpha", "Middle"]
    assert store.count() == 3


def test_get_missing_book_returns_none(store):
    assert store.get_book(42) is None


def test_update_overwrites_all_fields(store):
    book = store.insert_book(Book("Old", "Author", 2, cover_identifier="123", notes="first"))

    assert store.update_book(book.id, Book("New", "Other", 4)) is True

    updated = store.get_book(book.id)
    assert updated.title == "New"
    assert updated.author == "Other"
    assert updated.rating == 4
    assert updated.cover_identifier is None
    assert updated.notes is None


def test_update_missing_book_returns_false(store):
    assert store.update_book(99, Book("Ghost", "Nobody", 3)) is False
    assert store.list_books() == []


def test_delete_missing_book_leaves_listing_unchanged(store):
    store.insert_book(Book("Keep", "Me", 4))
    before = store.list_books()

    assert store.delete_book(12345) is False
    assert store.list_books() == before


@pytest.mark.parametrize("book_id", [2 ** 63, 99999999999999999999, -(2 ** 63) - 1])
def test_ids_beyond_64_bits_are_not_found(store, book_id):
    store.insert_book(Book("Keep", "Me", 4))
    before = store.list_books()

    assert store.get_book(book_id) is None
    assert store.update_book(book_id, Book("Ghost", "Nobody", 3)) is False
    assert store.delete_book(book_id) is False
    assert store.list_books() == before


def test_delete_removes_book(store):
    book = store.insert_book(Book("Gone", "Soon", 1))
    assert store.delete_book(book.id) is True
    assert store.get_book(book.id) is None


@pytest.mark.parametrize("rating", [0, 6, -3, 100])
def test_rating_out_of_range_is_rejected_by_store(store, rating):
    with pytest.raises(RatingConstraintError, match="between 1 and 5"):
        store.insert_book(Book("Bad", "Rating", rating))
    assert store.list_books() == []


def test_non_integer_rating_is_rejected_by_store(store):
    with pytest.raises(RatingConstraintError):
        store.insert_book(Book("Bad", "Rating", "abc"))


def test_update_with_invalid_rating_keeps_record(store):
    book = store.insert_book(Book("Steady", "Writer", 2))
    with pytest.raises(RatingConstraintError):
        store.update_book(book.id, Book("Steady", "Writer", 9))
    assert store.get_book(book.id).rating == 2


def test_sqlite_check_constraint_exists(tmp_path):
    path = str(tmp_path / "books.db")
    with SQLiteBookStore(path):
        pass
    conn = sqlite3.connect(path)
    try:
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute("INSERT INTO books (title, author, rating) VALUES ('t', 'a', 7)")
    finally:
        conn.close()


def test_sqlite_store_must_be_open(tmp_path):
    store = SQLiteBookStore(str(tmp_path / "closed.db"))
    with pytest.raises(StoreError):
        store.list_books()


def test_json_store_reads_existing_file(tmp_path):
    path = tmp_path / "books.json"
    path.write_text(json.dumps([
        {"id": 7, "title": "Persisted", "author": "Writer", "rating": 4, "cover_identifier": None, "notes": None},
    ]), encoding="utf-8")

    with JsonFileBookStore(str(path)) as store:
        assert store.get_book(7).title == "Persisted"
        assert store.insert_book(Book("Next", "Writer", 3)).id == 8


def test_json_store_rejects_corrupt_file(tmp_path):
    path = tmp_path / "books.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StoreError):
        JsonFileBookStore(str(path)).open()


def test_json_store_persists_between_instances(tmp_path):
    path = str(tmp_path / "books.json")
    with JsonFileBookStore(path) as store:
        store.insert_book(Book("Sapiens", "Yuval Noah Harari", 4))

    with JsonFileBookStore(path) as store:
        assert [b.title for b in store.list_books()] == ["Sapiens"]


def test_create_store_picks_backend(tmp_path):
    json_store = create_store(Settings(store_backend="json", json_file=str(tmp_path / "b.json")))
    sqlite_store = create_store(Settings(store_backend="sqlite", database_file=str(tmp_path / "b.db")))
    assert isinstance(json_store, JsonFileBookStore)
    assert isinstance(sqlite_store, SQLiteBookStore)
    assert sqlite_store.path.endswith("b.db")


def test_create_store_rejects_unknown_backend():
    with pytest.raises(ValueError, match="Unknown store backend"):
        create_store(Settings(store_backend="postgres"))
