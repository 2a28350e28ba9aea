"""Tests for the async catalog client"""

import httpx
import pytest

from app.catalog_client import CatalogClient, CatalogFetchError
from tests.conftest import make_raw_item


def _client(handler):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CatalogClient(base_url="https://catalog.test/api/v2/", http_client=http_client)


class TestCatalogClient:
    """Test catalog client request handling"""

    def test_item_url(self):
        client = _client(lambda request: httpx.Response(200, json={}))
        assert client.item_url(25) == "https://catalog.test/api/v2/pokemon/25"

    @pytest.mark.asyncio
    async def test_fetch_item_returns_json(self):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, json=make_raw_item(1, "bulbasaur"))

        client = _client(handler)
        raw = await client.fetch_item(1)

        assert raw["name"] == "bulbasaur"
        assert seen == ["/api/v2/pokemon/1"]
        assert client.requests_made == 1

    @pytest.mark.asyncio
    async def test_non_success_status_raises(self):
        client = _client(lambda request: httpx.Response(404, text="Not Found"))

        with pytest.raises(CatalogFetchError) as exc_info:
            await client.fetch_item(10_000)

        assert exc_info.value.status_code == 404
        assert exc_info.value.item_id == 10_000

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(handler)

        with pytest.raises(CatalogFetchError) as exc_info:
            await client.fetch_item(3)

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self):
        client = _client(lambda request: httpx.Response(200, content=b"{not json"))

        with pytest.raises(CatalogFetchError, match="invalid JSON"):
            await client.fetch_item(42)
