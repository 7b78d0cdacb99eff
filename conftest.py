import pytest
from fastapi.testclient import TestClient

from book_notes.api import create_app
from book_notes.config import Settings
from book_notes.exceptions import CoverLookupError
from book_notes.library import Library
from book_notes.services.covers import CoverResolver
from book_notes.storage import JsonFileBookStore, SQLiteBookStore

FALLBACK = "https://example.test/no_cover.jpg"


class StubCoverProvider:
    """Cover provider answering from a dict instead of the network."""

    name = "stub"

    def __init__(self, covers=None, failing=()):
        self.covers = dict(covers or {})
        self.failing = set(failing)
        self.calls = []

    async def find_cover_url(self, isbn):
        self.calls.append(isbn)
        if isbn in self.failing:
            raise CoverLookupError(f"lookup for {isbn} failed")
        return self.covers.get(isbn)


@pytest.fixture(params=["sqlite", "json"])
def store(tmp_path, request):
    # Every store-level test runs against both backends
    if request.param == "sqlite":
        book_store = SQLiteBookStore(str(tmp_path / f"test_{request.node.name}.db"))
    else:
        book_store = JsonFileBookStore(str(tmp_path / f"test_{request.node.name}.json"))
    book_store.open()
    yield book_store
    book_store.close()


@pytest.fixture
def cover_provider():
    return StubCoverProvider()


@pytest.fixture
def cover_resolver(cover_provider):
    return CoverResolver(cover_provider, fallback_url=FALLBACK)


@pytest.fixture
def lib(store, cover_resolver):
    return Library(store, cover_resolver)


@pytest.fixture
def client(tmp_path, cover_resolver):
    app = create_app(
        settings=Settings(app_name="Book Notes Test"),
        store=SQLiteBookStore(str(tmp_path / "api_test.db")),
        cover_resolver=cover_resolver,
    )
    with TestClient(app) as test_client:
        yield test_client
