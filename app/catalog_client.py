"""
Async client for the upstream catalog service.

One call, one item: ``GET {base_url}/pokemon/{id}``. Every way a single
request can go wrong is reported as CatalogFetchError so callers can treat
them uniformly as a failed retrieval for that ID.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from config.settings import settings

logger = logging.getLogger("catalog_client")

ITEM_PATH = "/pokemon/{item_id}"


class CatalogFetchError(Exception):
    """Raised when a single catalog item cannot be retrieved."""

    def __init__(self, message: str, item_id: int, status_code: Optional[int] = None):
        super().__init__(message)
        self.item_id = item_id
        self.status_code = status_code


class CatalogClient:
    """
    Thin async wrapper over httpx for catalog item lookups.

    Cancelling the task awaiting ``fetch_item`` aborts the request at the
    transport level.
    """

    def __init__(
        self,
        base_url: str = settings.catalog_base_url,
        timeout: float = settings.request_timeout_seconds,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Catalog API root, without trailing slash
            timeout: Per-request timeout in seconds
            http_client: Pre-built client (tests inject one with a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self.requests_made = 0

    def item_url(self, item_id: int) -> str:
        return f"{self.base_url}{ITEM_PATH.format(item_id=item_id)}"

    async def fetch_item(self, item_id: int) -> Dict[str, Any]:
        """
        Fetch one raw catalog item.

        Returns:
            Decoded JSON body

        Raises:
            CatalogFetchError: On transport error, non-2xx status or undecodable body
        """
        url = self.item_url(item_id)
        self.requests_made += 1
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            raise CatalogFetchError(f"Request for item {item_id} failed: {e}", item_id) from e

        if not response.is_success:
            raise CatalogFetchError(
                f"Catalog returned {response.status_code} for item {item_id}",
                item_id,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise CatalogFetchError(
                f"Catalog returned invalid JSON for item {item_id}",
                item_id,
                status_code=response.status_code,
            ) from e

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()


# Global catalog client instance
_catalog_client: Optional[CatalogClient] = None


def get_catalog_client() -> CatalogClient:
    """Get or create the global catalog client."""
    global _catalog_client
    if _catalog_client is None:
        _catalog_client = CatalogClient()
    return _catalog_client
