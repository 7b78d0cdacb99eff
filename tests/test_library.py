import asyncio
import random

import pytest

from book_notes.book import Book
from book_notes.exceptions import BookValidationError
from book_notes.library import SortKey, filter_books, sort_books


def _books():
    return [
        Book("The Hobbit", "J.R.R. Tolkien", 4, id=1),
        Book("Dune", "Frank Herbert", 5, id=2),
        Book("emma", "Jane Austen", 2, id=3),
        Book("Beloved", "Toni Morrison", 5, id=4),
        Book("Atonement", "Ian McEwan", 3, id=5),
    ]


def test_sort_by_rating_is_non_increasing():
    rng = random.Random(7)
    for _ in range(20):
        books = [Book(f"T{i}", "A", rng.randint(1, 5), id=i) for i in range(rng.randint(0, 12))]
        ratings = [b.rating for b in sort_books(books, SortKey.RATING)]
        assert ratings == sorted(ratings, reverse=True)


def test_sort_by_rating_keeps_storage_order_for_ties():
    ordered = sort_books(_books(), SortKey.RATING)
    assert [b.id for b in ordered] == [2, 4, 1, 5, 3]


def test_sort_alphabetical_is_non_decreasing():
    titles = [b.title for b in sort_books(_books(), SortKey.ALPHABETICAL)]
    assert titles == sorted(titles)


def test_no_sort_keeps_storage_order():
    assert [b.id for b in sort_books(_books(), None)] == [1, 2, 3, 4, 5]


@pytest.mark.parametrize("raw,expected", [
    ("rating", SortKey.RATING),
    ("alphabetical", SortKey.ALPHABETICAL),
    ("", None),
    (None, None),
    ("newest", None),
])
def test_sort_key_parse(raw, expected):
    assert SortKey.parse(raw) is expected


def test_search_matches_title_or_author_ignoring_case():
    assert [b.id for b in filter_books(_books(), "EMMA")] == [3]
    assert [b.id for b in filter_books(_books(), "herbert")] == [2]
    assert [b.id for b in filter_books(_books(), "AN")] == [2, 3, 5]


@pytest.mark.parametrize("search", [None, "", "   "])
def test_empty_search_returns_everything(search):
    assert filter_books(_books(), search) == _books()


def test_search_without_matches_is_empty():
    assert filter_books(_books(), "zzz") == []


def test_add_book_then_list_by_rating_puts_it_first(lib):
    lib.add_book({"title": "Middling", "author": "Someone", "rating": "3"})
    lib.add_book({"title": "Dune", "author": "Herbert", "rating": "5"})

    views = asyncio.run(lib.list_books(sort="rating"))

    assert views[0].book.title == "Dune"
    assert views[0].book.rating == 5


def test_add_book_rejects_invalid_form(lib):
    with pytest.raises(BookValidationError) as excinfo:
        lib.add_book({"title": "", "author": "", "rating": "9"})
    assert len(excinfo.value.messages) == 3
    assert lib.find_books() == []


def test_edit_with_invalid_rating_leaves_record_unchanged(lib):
    for i in range(3):
        lib.add_book({"title": f"Book {i}", "author": "Writer", "rating": "2"})
    target = lib.find_books()[2]

    with pytest.raises(BookValidationError):
        lib.update_book(target.id, {"title": "Changed", "author": "Writer", "rating": "abc"})

    unchanged = lib.get_book(target.id)
    assert unchanged.title == "Book 2"
    assert unchanged.rating == 2


def test_update_book_overwrites_fields(lib):
    book = lib.add_book({"title": "Draft", "author": "Writer", "rating": "1", "isbn": "111"})

    assert lib.update_book(book.id, {"title": "Final", "author": "Writer", "rating": "4", "isbn": ""}) is True

    updated = lib.get_book(book.id)
    assert updated.title == "Final"
    assert updated.rating == 4
    assert updated.cover_identifier is None


def test_update_missing_book_is_a_no_op(lib):
    assert lib.update_book(404, {"title": "X", "author": "Y", "rating": "3"}) is False
    assert lib.find_books() == []


def test_remove_missing_book_does_not_error(lib):
    lib.add_book({"title": "Stay", "author": "Here", "rating": "3"})
    before = lib.find_books()

    assert lib.remove_book(999) is False
    assert lib.find_books() == before


def test_list_books_attaches_covers_in_order(lib, cover_provider):
    cover_provider.covers["111"] = "https://covers.test/111.jpg"
    cover_provider.failing.add("222")
    lib.add_book({"title": "With cover", "author": "A", "rating": "3", "isbn": "111"})
    lib.add_book({"title": "Broken lookup", "author": "B", "rating": "4", "isbn": "222"})
    lib.add_book({"title": "No isbn", "author": "C", "rating": "5"})

    views = asyncio.run(lib.list_books())

    assert [v.book.title for v in views] == ["With cover", "Broken lookup", "No isbn"]
    assert [v.cover_url for v in views] == ["https://covers.test/111.jpg", lib.covers.fallback_url, lib.covers.fallback_url]
    assert views[0].book.cover_url == "https://covers.test/111.jpg"
    assert not views[0].cover.is_fallback
    assert views[1].cover.is_fallback and views[2].cover.is_fallback
    # Books without an identifier never reach the provider
    assert sorted(cover_provider.calls) == ["111", "222"]


def test_list_books_filters_before_resolving_covers(lib, cover_provider):
    lib.add_book({"title": "Dune", "author": "Herbert", "rating": "5", "isbn": "111"})
    lib.add_book({"title": "Emma", "author": "Austen", "rating": "3", "isbn": "222"})

    views = asyncio.run(lib.list_books(search="dune"))

    assert [v.book.title for v in views] == ["Dune"]
    assert cover_provider.calls == ["111"]


def test_book_str_shows_title_author_and_rating():
    assert str(Book("Dune", "Frank Herbert", 5)) == "Dune by Frank Herbert (5/5)"
