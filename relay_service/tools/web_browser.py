from urllib.parse import urlparse

import httpx
from pydantic import Field

from relay_service.core.logging import logger
from relay_service.core.types import INCOMPLETE, ToolResult
from relay_service.tools.base import BaseTool, ToolParams
from relay_service.tools.html_text import page_text


class WebBrowserTool(BaseTool):
    """Useful for when you need to get live information from a webpage."""

    class Params(ToolParams):
        url: str = Field(..., description="The URL to browse")

    marker_field = "url"

    def __init__(self, timeout: float = 15.0, max_chars: int = 20000):
        super().__init__()
        self.timeout = timeout
        self.max_chars = max_chars

    async def run(self, params: Params) -> ToolResult:
        url = params.url.strip().strip("`")
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            logger.warning(f"web_browser: rejecting URL {url!r}")
            return INCOMPLETE

        logger.info(f"Browsing URL: {url}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(url, headers={"User-Agent": "Mozilla/5.0 (relay web_browser)"})
        except httpx.HTTPError as e:
            logger.warning(f"web_browser: fetch failed for {url}: {e}")
            return INCOMPLETE
        if response.status_code >= 400:
            logger.warning(f"web_browser: {url} returned {response.status_code}")
            return INCOMPLETE

        return page_text(response.text, base_url=str(response.url), max_chars=self.max_chars)
