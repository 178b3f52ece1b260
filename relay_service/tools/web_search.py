"""Web search through the Brave Search API."""
import os
from typing import Literal, Optional

from pydantic import Field

from relay_service.core.logging import logger
from relay_service.tools.base import BaseTool, ToolParams
from relay_service.tools.brave_client import BraveSearchClient


class WebSearchTool(BaseTool):
    """Useful for searching the web for current information, news and pages to browse."""

    class Params(ToolParams):
        query: str = Field(..., min_length=1, description="Search query")
        count: int = Field(5, ge=1, le=20, description="Number of results (1-20)")
        country: str = Field("us", min_length=2, max_length=2, description="2-letter country code")
        search_lang: str = Field("en", min_length=2, max_length=2, description="2-letter language code")
        freshness: Optional[Literal["pd", "pw", "pm", "py"]] = Field(
            None, description="Past day, week, month or year"
        )

    def __init__(self, api_key_env: str = "BRAVE_API_KEY", total_timeout: float = 15.0, max_retries: int = 2):
        super().__init__()
        self.api_key_env = api_key_env
        self.total_timeout = total_timeout
        self.max_retries = max_retries

    def _client(self) -> BraveSearchClient:
        api_key = os.getenv(self.api_key_env)
        if not api_key:
            raise ValueError(f"Environment variable {self.api_key_env} not set")
        return BraveSearchClient(api_key=api_key, total_timeout=self.total_timeout, max_retries=self.max_retries)

    async def run(self, params: Params) -> str:
        result = await self._client().search(
            q=params.query.strip(),
            count=params.count,
            country=params.country,
            search_lang=params.search_lang,
            freshness=params.freshness,
        )
        results = result["results"]
        logger.info(f"web_search: {len(results)} results for {params.query!r}")
        if not results:
            return f"No web results found for {params.query}."
        return "\n".join(f"{r['rank']}. {r['title']}: {r['snippet']} - {r['url']}" for r in results)
