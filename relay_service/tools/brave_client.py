"""
Async client for the Brave Search web endpoint.

- Separate connect/read timeouts and an overall budget across retries
- Exponential backoff on 429 and 5xx only
- Results normalized to {"results": [...], "meta": {...}}
- API keys and full responses never reach the logs
"""
import asyncio
import re
import time
from typing import Any, Dict, Optional

import httpx

from relay_service.core.logging import logger

_TAG_RE = re.compile(r"<[^>]+>")


class BraveSearchClient:
    BASE_URL = "https://api.search.brave.com/res/v1/web/search"

    def __init__(
        self,
        api_key: str,
        connect_timeout: float = 2.0,
        read_timeout: float = 6.0,
        total_timeout: float = 15.0,
        max_retries: int = 2,
        backoff_base: float = 0.5,
    ):
        if not api_key:
            raise ValueError("API key cannot be empty")
        self.api_key = api_key
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.total_timeout = total_timeout
        self.max_retries = max_retries
        self.backoff_base = backoff_base

    def _delay(self, attempt: int, retry_after: Optional[str] = None) -> float:
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass
        return self.backoff_base * (2 ** attempt)

    async def search(
        self,
        q: str,
        count: int = 10,
        country: str = "us",
        search_lang: str = "en",
        freshness: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Run one web search.

        Raises:
            ValueError: authentication failed (403/422)
            httpx.HTTPStatusError: non-retryable error, or retries exhausted
            asyncio.TimeoutError: total timeout budget exceeded
        """
        start = time.monotonic()
        params: Dict[str, Any] = {"q": q, "count": min(count, 20), "country": country, "search_lang": search_lang}
        if freshness:
            params["freshness"] = freshness
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip",
            "X-Subscription-Token": self.api_key,
        }

        attempt = 0
        while True:
            elapsed = time.monotonic() - start
            if elapsed >= self.total_timeout:
                logger.error(f"Brave: total timeout exceeded ({self.total_timeout}s) after {attempt} attempts")
                raise asyncio.TimeoutError(f"Request exceeded total timeout of {self.total_timeout}s")
            remaining = self.total_timeout - elapsed
            timeout = httpx.Timeout(
                connect=min(self.connect_timeout, remaining),
                read=min(self.read_timeout, remaining),
                write=5.0,
                pool=5.0,
            )

            try:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.get(self.BASE_URL, headers=headers, params=params)
            except httpx.TimeoutException:
                logger.warning(f"Brave: timeout on attempt {attempt + 1}/{self.max_retries + 1}")
                if attempt >= self.max_retries:
                    raise
                await asyncio.sleep(self._delay(attempt))
                attempt += 1
                continue

            logger.info(
                f"Brave API response: status={response.status_code}, "
                f"latency={int((time.monotonic() - start) * 1000)}ms, attempt={attempt + 1}"
            )
            if response.status_code == 200:
                return self._normalize_response(response.json(), q, time.monotonic() - start)

            if response.status_code in (403, 422):
                logger.error(f"Brave: authentication failed ({response.status_code}), check BRAVE_API_KEY")
                raise ValueError("Brave API authentication failed. Please verify your BRAVE_API_KEY.")

            if (response.status_code == 429 or response.status_code >= 500) and attempt < self.max_retries:
                delay = self._delay(attempt, response.headers.get("Retry-After"))
                logger.warning(
                    f"Brave: status {response.status_code}, attempt {attempt + 1}/{self.max_retries + 1}, "
                    f"retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)
                attempt += 1
                continue

            response.raise_for_status()
            # 1xx/3xx that httpx did not raise for
            raise httpx.HTTPStatusError(
                f"Unexpected status {response.status_code}", request=response.request, response=response
            )

    def _normalize_response(self, data: Dict[str, Any], query: str, elapsed_sec: float) -> Dict[str, Any]:
        results = []
        for idx, item in enumerate(data.get("web", {}).get("results", [])):
            snippet = _TAG_RE.sub("", item.get("description", ""))
            if len(snippet) > 360:
                snippet = snippet[:360] + "..."
            results.append({
                "url": item.get("url", ""),
                "title": item.get("title", ""),
                "snippet": snippet,
                "rank": idx + 1,
            })
        logger.info(f"Brave: normalized {len(results)} results for query={query!r}")
        return {
            "results": results,
            "meta": {"took_ms": int(elapsed_sec * 1000), "engine": "brave", "query": query},
        }
