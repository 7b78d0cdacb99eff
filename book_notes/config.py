import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

FALLBACK_COVER_URL = "https://www.press.uillinois.edu/books/images/no_cover.jpg"


@dataclass
class Settings:
    # Server
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8000"))

    # Record store
    store_backend: str = os.getenv("BOOK_STORE", "sqlite")  # sqlite | json
    database_file: str = os.getenv("LIBRARY_DB_FILE", "book_notes.db")
    json_file: str = os.getenv("LIBRARY_JSON_FILE", "books.json")

    # Cover lookups
    cover_provider: str = os.getenv("COVER_PROVIDER", "google_books")  # google_books | open_library
    google_books_api_key: Optional[str] = os.getenv("GOOGLE_BOOKS_API_KEY")
    google_books_timeout: float = float(os.getenv("GOOGLE_BOOKS_TIMEOUT", "10"))
    fallback_cover_url: str = os.getenv("FALLBACK_COVER_URL", FALLBACK_COVER_URL)

    # Application
    app_name: str = os.getenv("APP_NAME", "Book Notes")
    environment: str = os.getenv("ENVIRONMENT", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def store_path(self) -> str:
        """Path of the file backing the selected store."""
        return self.json_file if self.store_backend == "json" else self.database_file


settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
