import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol, Sequence

from book_notes.book import Book
from book_notes.config import FALLBACK_COVER_URL, Settings
from book_notes.exceptions import CoverLookupError
from book_notes.services.google_books_service import GoogleBooksService
from book_notes.services.http_client import OptimizedHTTPClient
from book_notes.services.open_library_service import OpenLibraryCoverService

logger = logging.getLogger(__name__)


class CoverSource(Enum):
    RESOLVED = "resolved"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class CoverResult:
    """Outcome of one cover lookup: a real cover URL or the fallback image."""
    url: str
    source: CoverSource
    reason: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.source is CoverSource.FALLBACK

    @classmethod
    def resolved(cls, url: str) -> "CoverResult":
        return cls(url=url, source=CoverSource.RESOLVED)

    @classmethod
    def fallback(cls, url: str, reason: str) -> "CoverResult":
        return cls(url=url, source=CoverSource.FALLBACK, reason=reason)


class CoverProvider(Protocol):
    name: str

    async def find_cover_url(self, isbn: str) -> Optional[str]:
        ...


class CoverResolver:
    """Best-effort cover lookup for listed books.

    Every book gets a CoverResult; anything short of a cover URL from the
    provider becomes the fallback image. Lookups are not cached or retried.
    """

    def __init__(self, provider: Optional[CoverProvider], fallback_url: str = FALLBACK_COVER_URL):
        self.provider = provider
        self.fallback_url = fallback_url

    async def resolve(self, book: Book) -> CoverResult:
        isbn = book.cover_identifier
        if not isbn:
            return CoverResult.fallback(self.fallback_url, "no cover identifier")
        if self.provider is None:
            return CoverResult.fallback(self.fallback_url, "no cover provider")

        try:
            url = await self.provider.find_cover_url(isbn)
        except CoverLookupError as e:
            logger.error("Error fetching cover image for ISBN %s: %s", isbn, e)
            return CoverResult.fallback(self.fallback_url, str(e))
        except Exception as e:
            logger.exception("Unexpected error fetching cover image for ISBN %s", isbn)
            return CoverResult.fallback(self.fallback_url, str(e) or e.__class__.__name__)

        if not url:
            logger.warning("No cover found for ISBN %s", isbn)
            return CoverResult.fallback(self.fallback_url, "no matching volume")
        return CoverResult.resolved(url)

    async def resolve_all(self, books: Sequence[Book]) -> List[CoverResult]:
        """Resolve covers concurrently; results line up with ``books``."""
        return list(await asyncio.gather(*(self.resolve(book) for book in books)))


def create_cover_resolver(settings: Settings, http_client: OptimizedHTTPClient) -> CoverResolver:
    provider: CoverProvider
    if settings.cover_provider == GoogleBooksService.name:
        provider = GoogleBooksService(http_client, api_key=settings.google_books_api_key)
    elif settings.cover_provider == OpenLibraryCoverService.name:
        provider = OpenLibraryCoverService(http_client)
    else:
        raise ValueError(
            f"Unknown cover provider {settings.cover_provider!r}. "
            f"Allowed: {GoogleBooksService.name}, {OpenLibraryCoverService.name}"
        )
    return CoverResolver(provider, fallback_url=settings.fallback_cover_url)
