import re

import httpx
from pydantic import Field

from relay_service.core.logging import logger
from relay_service.core.types import INCOMPLETE, ToolResult
from relay_service.tools.base import BaseTool, ToolParams

DEFINE_URL = "https://api.urbandictionary.com/v0/define"


def _clean(text: str) -> str:
    # Definitions link other terms as [term]
    return re.sub(r"\[([^\]]+)\]", r"\1", text or "").strip()


class UrbanDictionaryTool(BaseTool):
    """Useful for looking up slang definitions and internet culture terms"""

    class Params(ToolParams):
        term: str = Field(..., description="The term to look up")

    marker_field = "term"

    def __init__(self, max_definitions: int = 3, timeout: float = 10.0):
        super().__init__()
        self.max_definitions = max_definitions
        self.timeout = timeout

    async def run(self, params: Params) -> ToolResult:
        logger.info(f"Searching for term: {params.term}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(DEFINE_URL, params={"term": params.term})
                response.raise_for_status()
                entries = response.json().get("list", [])
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"urban_dictionary: lookup failed: {e}")
            return INCOMPLETE

        if not entries:
            return f"No definitions found for {params.term}."
        entries = sorted(entries, key=lambda e: e.get("thumbs_up", 0), reverse=True)
        lines = []
        for i, entry in enumerate(entries[: self.max_definitions], 1):
            lines.append(f"{i}. {_clean(entry.get('definition', ''))}")
            example = _clean(entry.get("example", ""))
            if example:
                lines.append(f"   Example: {example}")
        return f"{entries[0].get('word', params.term)}:\n" + "\n".join(lines)
