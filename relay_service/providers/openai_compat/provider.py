from typing import Any, AsyncGenerator, Dict, List, Optional

import openai

from relay_service.core.errors import ProviderStreamError
from relay_service.core.interfaces import ChatProvider
from relay_service.core.logging import logger
from relay_service.core.types import FileUrlPart, ImageUrlPart, Message, ModelDescriptor


def format_message(msg: Message, flatten: bool = False) -> Dict[str, Any]:
    """Message -> chat.completions message dict."""
    if flatten or isinstance(msg.content, str):
        return {"role": msg.role, "content": msg.text()}
    parts = []
    for part in msg.content:
        if isinstance(part, ImageUrlPart):
            parts.append({"type": "image_url", "image_url": {"url": part.url}})
        elif isinstance(part, FileUrlPart):
            # No file part in the chat API; pass the reference as text.
            parts.append({"type": "text", "text": f"[File: {part.name}]({part.url})"})
        else:
            parts.append({"type": "text", "text": part.text})
    return {"role": msg.role, "content": parts}


class OpenAICompatProvider(ChatProvider):
    """Any vendor speaking the OpenAI chat.completions protocol (OpenAI, Gemini, DeepSeek, Grok, ...)."""

    def __init__(
        self,
        provider_id: str,
        client: Any,
        flatten_content: bool = False,
        max_tokens: Optional[int] = None,
    ):
        self.provider_id = provider_id
        self.client = client
        self.flatten_content = flatten_content
        self.max_tokens = max_tokens

    def _request(self, model: ModelDescriptor, messages: List[Message]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": model.name,
            "messages": [format_message(m, self.flatten_content) for m in messages],
        }
        if self.max_tokens:
            kwargs["max_tokens"] = self.max_tokens
        return kwargs

    async def stream(
        self,
        model: ModelDescriptor,
        messages: List[Message],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> AsyncGenerator[Any, None]:
        kwargs = self._request(model, messages)
        kwargs["stream"] = True
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"

        logger.info(f"Opening stream: provider={self.provider_id}, model={model.name}, tools={len(tools or [])}")
        try:
            response = await self.client.chat.completions.create(**kwargs)
        except openai.OpenAIError as e:
            raise ProviderStreamError(self.provider_id, str(e)) from e

        try:
            async for chunk in response:
                yield chunk
        except openai.OpenAIError as e:
            raise ProviderStreamError(self.provider_id, str(e)) from e
        finally:
            close = getattr(response, "close", None)
            if close is not None:
                await close()
            logger.debug(f"Stream closed: provider={self.provider_id}, model={model.name}")

    async def complete(self, model: ModelDescriptor, messages: List[Message]) -> str:
        logger.info(f"Requesting completion: provider={self.provider_id}, model={model.name}")
        try:
            response = await self.client.chat.completions.create(**self._request(model, messages))
        except openai.OpenAIError as e:
            raise ProviderStreamError(self.provider_id, str(e)) from e
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
