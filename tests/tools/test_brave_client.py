"""
Unit tests for BraveSearchClient.

- Successful search with normalized results
- Retry on 429 / 5xx, no retry on 4xx
- Authentication failure (403)
- Snippet cleanup and truncation at 360 chars
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
import httpx

from relay_service.tools.brave_client import BraveSearchClient


def make_response(status_code, payload=None, headers=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    response.headers = headers or {}
    if status_code >= 400:
        request = httpx.Request("GET", BraveSearchClient.BASE_URL)
        real = httpx.Response(status_code, request=request)
        response.raise_for_status.side_effect = httpx.HTTPStatusError("error", request=request, response=real)
    return response


class TestBraveSearchClientInit:
    def test_init_with_defaults(self):
        client = BraveSearchClient(api_key="test_key")
        assert client.connect_timeout == 2.0
        assert client.read_timeout == 6.0
        assert client.total_timeout == 15.0
        assert client.max_retries == 2

    def test_empty_key_is_rejected(self):
        with pytest.raises(ValueError):
            BraveSearchClient(api_key="")


class TestBraveSearchClientSearch:
    @pytest.mark.asyncio
    async def test_successful_search(self):
        client = BraveSearchClient(api_key="test_key")
        payload = {"web": {"results": [
            {"url": "https://example.com/1", "title": "One", "description": "First <strong>hit</strong>"},
            {"url": "https://example.com/2", "title": "Two", "description": "x" * 400},
        ]}}
        with patch.object(httpx.AsyncClient, "get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = make_response(200, payload)
            result = await client.search(q="test query", count=50, freshness="pw")

        params = mock_get.call_args.kwargs["params"]
        assert params["q"] == "test query"
        assert params["count"] == 20
        assert params["freshness"] == "pw"
        assert mock_get.call_args.kwargs["headers"]["X-Subscription-Token"] == "test_key"

        first, second = result["results"]
        assert first == {"url": "https://example.com/1", "title": "One", "snippet": "First hit", "rank": 1}
        assert second["snippet"] == "x" * 360 + "..."
        assert result["meta"]["engine"] == "brave"
        assert result["meta"]["query"] == "test query"

    @pytest.mark.asyncio
    async def test_empty_results(self):
        client = BraveSearchClient(api_key="test_key")
        with patch.object(httpx.AsyncClient, "get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = make_response(200, {})
            result = await client.search(q="nothing")
        assert result["results"] == []

    @pytest.mark.asyncio
    async def test_retries_rate_limit_then_succeeds(self):
        client = BraveSearchClient(api_key="test_key", backoff_base=0.0)
        with patch.object(httpx.AsyncClient, "get", new_callable=AsyncMock) as mock_get, \
                patch("relay_service.tools.brave_client.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            mock_get.side_effect = [
                make_response(429, headers={"Retry-After": "1"}),
                make_response(200, {"web": {"results": []}}),
            ]
            result = await client.search(q="q")
        assert mock_get.call_count == 2
        mock_sleep.assert_awaited_once_with(1.0)
        assert result["results"] == []

    @pytest.mark.asyncio
    async def test_server_errors_exhaust_retries(self):
        client = BraveSearchClient(api_key="test_key", max_retries=2, backoff_base=0.0)
        with patch.object(httpx.AsyncClient, "get", new_callable=AsyncMock) as mock_get, \
                patch("relay_service.tools.brave_client.asyncio.sleep", new_callable=AsyncMock):
            mock_get.return_value = make_response(503)
            with pytest.raises(httpx.HTTPStatusError):
                await client.search(q="q")
        assert mock_get.call_count == 3

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        client = BraveSearchClient(api_key="test_key")
        with patch.object(httpx.AsyncClient, "get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = make_response(400)
            with pytest.raises(httpx.HTTPStatusError):
                await client.search(q="q")
        assert mock_get.call_count == 1

    @pytest.mark.asyncio
    async def test_auth_failure(self):
        client = BraveSearchClient(api_key="bad")
        with patch.object(httpx.AsyncClient, "get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = make_response(403)
            with pytest.raises(ValueError, match="authentication failed"):
                await client.search(q="q")
