from urllib.parse import quote

import httpx
from pydantic import Field

from relay_service.core.logging import logger
from relay_service.tools.base import BaseTool, ToolParams

SUMMARY_URL = "https://en.wikipedia.org/api/rest_v1/page/summary/{title}"


class WikipediaTool(BaseTool):
    """Useful for getting quick summaries from Wikipedia"""

    class Params(ToolParams):
        query: str = Field(..., description="The topic to search on Wikipedia")

    marker_field = "query"

    def __init__(self, timeout: float = 10.0):
        super().__init__()
        self.timeout = timeout

    async def run(self, params: Params) -> str:
        title = quote(params.query.strip().replace(" ", "_"), safe="")
        logger.info(f"Searching Wikipedia for: {params.query}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(SUMMARY_URL.format(title=title))
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"wikipedia: lookup failed for {params.query!r}: {e}")
            return "Error: Could not fetch Wikipedia summary"
        return data.get("extract") or "Error: Could not fetch Wikipedia summary"
