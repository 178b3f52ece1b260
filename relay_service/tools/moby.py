import os
import uuid
from typing import Optional

import httpx
from pydantic import ConfigDict, Field

from relay_service.core.logging import logger
from relay_service.tools.base import BaseTool, ToolParams

DEFAULT_ENDPOINT = "https://app.triplewhale.com/api/v2/willy/answer-nlq-question"


class MobyTool(BaseTool):
    """Useful for getting e-commerce analytics and insights from Triple Whale's AI, Moby."""

    class Params(ToolParams):
        model_config = ConfigDict(populate_by_name=True)

        question: str = Field("What is triple whale?", description="Question to ask Triple Whale Moby")
        shop_id: str = Field("madisonbraids.myshopify.com", alias="shopId", description="Shopify store URL")
        parent_message_id: Optional[str] = Field(
            None, alias="parentMessageId", description="Parent message ID for conversation context"
        )

    def __init__(self, endpoint: str = DEFAULT_ENDPOINT, timeout: float = 60.0):
        super().__init__()
        self.endpoint = endpoint
        self.timeout = timeout

    def _headers(self) -> Optional[dict]:
        bearer = os.getenv("TW_BEARER_TOKEN")
        token = os.getenv("TW_TOKEN")
        if bearer:
            return {"content-type": "application/json", "Authorization": f"Bearer {bearer}"}
        if token:
            return {"content-type": "application/json", "x-api-key": token}
        return None

    async def run(self, params: Params) -> str:
        headers = self._headers()
        if headers is None:
            return "Error: Triple Whale token not configured."

        logger.info(f"Asking Moby: {params.question!r} for {params.shop_id}")
        body = {
            "stream": False,
            "shopId": params.shop_id,
            "conversationId": params.parent_message_id or str(uuid.uuid4()),
            "source": "chat",
            "dialect": "clickhouse",
            "additionalShopIds": [],
            "question": params.question,
            "query": params.question,
            "generateInsights": True,
            "isOutsideMainChat": True,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.endpoint, headers=headers, json=body)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"moby: request failed: {e}")
            return "Error: Could not fetch response from Triple Whale."

        messages = data.get("messages") or []
        text = messages[-1].get("text") if messages else None
        return f"{text} " if text else "No answer received from Moby."
