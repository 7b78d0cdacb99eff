import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

# Use HTTP/2 only when the 'h2' package is installed
try:
    import h2  # type: ignore  # noqa: F401
    _HTTP2_AVAILABLE = True
except ImportError:
    _HTTP2_AVAILABLE = False
    logger.debug("HTTP/2 disabled: 'h2' package is not installed.")


class OptimizedHTTPClient:
    """Shared async HTTP client with connection pooling.

    The application creates one at startup and closes it at shutdown; cover
    lookups for a listing all go through the same pool.
    """

    def __init__(self, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        limits = httpx.Limits(
            max_keepalive_connections=20,
            max_connections=100,
            keepalive_expiry=30.0
        )

        self._client = httpx.AsyncClient(
            limits=limits,
            timeout=httpx.Timeout(timeout, connect=5.0),
            follow_redirects=True,
            http2=_HTTP2_AVAILABLE and transport is None,
            transport=transport,
        )

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    async def get(self, url: str, **kwargs) -> httpx.Response:
        """Async GET through the pooled client"""
        return await self._client.get(url, **kwargs)

    async def close(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
