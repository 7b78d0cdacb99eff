"""Record stores

Both backends implement BookStore:
- SQLiteBookStore: `books` table with rating check constraints
- JsonFileBookStore: flat JSON list with locally assigned ids
"""

from book_notes.config import Settings
from book_notes.storage.base import BookStore
from book_notes.storage.json_file import JsonFileBookStore
from book_notes.storage.sqlite import SQLiteBookStore

STORES = {
    SQLiteBookStore.name: SQLiteBookStore,
    JsonFileBookStore.name: JsonFileBookStore,
}


def create_store(settings: Settings) -> BookStore:
    """Build the configured store. It still has to be opened."""
    try:
        store_cls = STORES[settings.store_backend]
    except KeyError:
        raise ValueError(
            f"Unknown store backend {settings.store_backend!r}. Allowed: {', '.join(sorted(STORES))}"
        ) from None
    return store_cls(settings.store_path)


__all__ = ["BookStore", "JsonFileBookStore", "SQLiteBookStore", "create_store", "STORES"]
