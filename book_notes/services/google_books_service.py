import logging
from typing import Any, Dict, List, Optional

import httpx

from book_notes.exceptions import CoverLookupError
from book_notes.services.http_client import OptimizedHTTPClient

logger = logging.getLogger(__name__)

COVER_URL_TEMPLATE = (
    "https://books.google.com/books/content?id={volume_id}"
    "&printsec=frontcover&img=1&zoom=1&edge=curl&source=gbs_api"
)


class GoogleBooksService:
    """Cover lookups against the Google Books volumes API"""

    name = "google_books"

    def __init__(self, http_client: OptimizedHTTPClient, api_key: Optional[str] = None):
        self.http_client = http_client
        self.api_key = api_key
        self.base_url = "https://www.googleapis.com/books/v1"

    async def _make_api_request(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Make an API request to Google Books

        Raises:
            CoverLookupError: transport error, non-200 status or a body that is not JSON.
        """
        url = f"{self.base_url}/{endpoint}"

        if self.api_key:
            params["key"] = self.api_key

        try:
            response = await self.http_client.get(url, params=params)
        except httpx.HTTPError as e:
            raise CoverLookupError(f"request to {endpoint} failed: {e}") from e

        if response.status_code != 200:
            raise CoverLookupError(f"{endpoint} answered {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise CoverLookupError(f"{endpoint} returned invalid JSON") from e
        if not isinstance(data, dict):
            raise CoverLookupError(f"{endpoint} returned an unexpected payload")
        return data

    async def search_volumes(self, isbn: str) -> List[Dict[str, Any]]:
        """Return the volume items matching an ISBN (possibly empty)."""
        clean_isbn = ''.join(c for c in isbn if c.isalnum())
        data = await self._make_api_request("volumes", {"q": f"isbn:{clean_isbn}"})
        items = data.get("items")
        if not isinstance(items, list):
            return []
        return [item for item in items if isinstance(item, dict)]

    async def find_cover_url(self, isbn: str) -> Optional[str]:
        """
        Derive a front cover URL for an ISBN

        Args:
            isbn: catalog identifier of the book

        Returns:
            Display URL built from the first matching volume, or None if the
            service has no volume for the identifier.

        Raises:
            CoverLookupError: the service could not be queried.
        """
        items = await self.search_volumes(isbn)
        for item in items:
            volume_id = item.get("id")
            if volume_id:
                return COVER_URL_TEMPLATE.format(volume_id=volume_id)
        return None
