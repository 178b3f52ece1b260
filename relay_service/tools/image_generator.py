import os
from typing import Literal

import openai
from pydantic import Field

from relay_service.core.logging import logger
from relay_service.tools.base import BaseTool, ToolParams


class ImageGeneratorTool(BaseTool):
    """Useful for generating images based on text descriptions using DALL-E or similar services"""

    class Params(ToolParams):
        prompt: str = Field(..., description="Description of the image to generate")
        size: Literal["256x256", "512x512", "1024x1024"] = "512x512"

    def __init__(self, model: str = "dall-e-2", api_key_env: str = "OPENAI_API_KEY", client=None):
        super().__init__()
        self.model = model
        self.api_key_env = api_key_env
        self._client = client

    def _get_client(self):
        if self._client is None:
            self._client = openai.AsyncOpenAI(api_key=os.getenv(self.api_key_env))
        return self._client

    async def run(self, params: Params) -> str:
        logger.info(f"Generating image for: {params.prompt!r} with size {params.size}")
        try:
            response = await self._get_client().images.generate(
                model=self.model, prompt=params.prompt, size=params.size, n=1
            )
        except openai.OpenAIError as e:
            logger.warning(f"image_generator: generation failed: {e}")
            return "Error: Could not generate image"
        return f"![Generated Image]({response.data[0].url})"
