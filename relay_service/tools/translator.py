import html
import os

import httpx
from pydantic import ConfigDict, Field

from relay_service.core.logging import logger
from relay_service.tools.base import BaseTool, ToolParams

TRANSLATE_URL = "https://translation.googleapis.com/language/translate/v2"


class TranslatorTool(BaseTool):
    """Useful for translating text between different languages"""

    class Params(ToolParams):
        model_config = ConfigDict(populate_by_name=True)

        text: str = Field(..., description="Text to translate")
        target_language: str = Field(
            ..., alias="targetLanguage", description="Target language code (e.g., es, fr, de)"
        )

    def __init__(self, api_key_env: str = "GOOGLE_TRANSLATE_API_KEY", timeout: float = 10.0):
        super().__init__()
        self.api_key_env = api_key_env
        self.timeout = timeout

    async def run(self, params: Params) -> str:
        api_key = os.getenv(self.api_key_env)
        if not api_key:
            raise ValueError(f"Environment variable {self.api_key_env} not set")

        logger.info(f"Translating {len(params.text)} chars to {params.target_language}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    TRANSLATE_URL,
                    params={"key": api_key},
                    json={"q": params.text, "target": params.target_language},
                )
                response.raise_for_status()
                data = response.json()
            return html.unescape(data["data"]["translations"][0]["translatedText"])
        except (httpx.HTTPError, KeyError, IndexError, ValueError) as e:
            logger.warning(f"translator: request failed: {e}")
            return "Error: Could not translate text"
