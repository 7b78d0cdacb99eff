import logging
from typing import Optional

import httpx

from book_notes.exceptions import CoverLookupError
from book_notes.services.http_client import OptimizedHTTPClient

logger = logging.getLogger(__name__)


class OpenLibraryCoverService:
    """Cover lookups against the Open Library covers API.

    The covers API serves a placeholder for unknown ISBNs unless asked not
    to, so the probe uses ``default=false`` and treats 404 as "no cover".
    """

    name = "open_library"

    def __init__(self, http_client: OptimizedHTTPClient):
        self.http_client = http_client
        self.base_url = "https://covers.openlibrary.org/b/isbn"

    def cover_url(self, isbn: str) -> str:
        clean_isbn = ''.join(c for c in isbn if c.isalnum())
        return f"{self.base_url}/{clean_isbn}-L.jpg"

    async def find_cover_url(self, isbn: str) -> Optional[str]:
        url = self.cover_url(isbn)
        logger.debug("Probing Open Library cover %s", url)
        try:
            response = await self.http_client.get(url, params={"default": "false"})
        except httpx.HTTPError as e:
            raise CoverLookupError(f"cover probe for {isbn} failed: {e}") from e

        if response.status_code == 200:
            return url
        if response.status_code == 404:
            return None
        raise CoverLookupError(f"cover probe for {isbn} answered {response.status_code}")
