from typing import Any, AsyncGenerator, Dict, List, Optional, Tuple

import anthropic

from relay_service.core.errors import ProviderStreamError
from relay_service.core.interfaces import ChatProvider
from relay_service.core.logging import logger
from relay_service.core.types import FileUrlPart, ImageUrlPart, Message, ModelDescriptor

DEFAULT_MAX_TOKENS = 4096


def _content_blocks(msg: Message) -> Any:
    if isinstance(msg.content, str):
        return msg.content
    blocks = []
    for part in msg.content:
        if isinstance(part, ImageUrlPart):
            blocks.append({"type": "image", "source": {"type": "url", "url": part.url}})
        elif isinstance(part, FileUrlPart):
            blocks.append({"type": "text", "text": f"[File: {part.name}]({part.url})"})
        else:
            blocks.append({"type": "text", "text": part.text})
    return blocks


def split_system(messages: List[Message]) -> Tuple[str, List[Dict[str, Any]]]:
    """System messages go to the top-level `system` field; the rest become user/assistant turns."""
    system = []
    turns = []
    for msg in messages:
        if msg.role == "system":
            system.append(msg.text())
            continue
        turns.append({"role": msg.role, "content": _content_blocks(msg)})
    return "\n\n".join(s for s in system if s), turns


class AnthropicProvider(ChatProvider):
    def __init__(self, provider_id: str, client: Any, max_tokens: Optional[int] = None):
        self.provider_id = provider_id
        self.client = client
        self.max_tokens = max_tokens or DEFAULT_MAX_TOKENS

    def _request(self, model: ModelDescriptor, messages: List[Message]) -> Dict[str, Any]:
        system, turns = split_system(messages)
        kwargs: Dict[str, Any] = {
            "model": model.name,
            "messages": turns,
            "max_tokens": self.max_tokens,
        }
        if system:
            kwargs["system"] = system
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

        logger.info(f"Opening stream: provider={self.provider_id}, model={model.name}, tools={len(tools or [])}")
        try:
            response = await self.client.messages.create(**kwargs)
        except anthropic.AnthropicError as e:
            raise ProviderStreamError(self.provider_id, str(e)) from e

        try:
            async for event in response:
                yield event
        except anthropic.AnthropicError as e:
            raise ProviderStreamError(self.provider_id, str(e)) from e
        finally:
            close = getattr(response, "close", None)
            if close is not None:
                await close()
            logger.debug(f"Stream closed: provider={self.provider_id}, model={model.name}")

    async def complete(self, model: ModelDescriptor, messages: List[Message]) -> str:
        logger.info(f"Requesting completion: provider={self.provider_id}, model={model.name}")
        try:
            response = await self.client.messages.create(**self._request(model, messages))
        except anthropic.AnthropicError as e:
            raise ProviderStreamError(self.provider_id, str(e)) from e
        return "".join(
            getattr(block, "text", "") for block in response.content if getattr(block, "type", "") == "text"
        )
