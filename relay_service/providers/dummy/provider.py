import asyncio
import re
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

# "/call NAME {json}" asks the echo client for a structured tool call
_CALL_RE = re.compile(r"^/call\s+(\w+)\s*(.*)$", re.DOTALL)


def _text_of(content: Any) -> str:
    if isinstance(content, str):
        return content
    pieces = []
    for part in content or []:
        if part.get("type") == "text":
            pieces.append(part.get("text", ""))
        elif part.get("type") == "image_url":
            pieces.append(f"[Image: {part.get('image_url', {}).get('url', '')}]")
    return "\n".join(pieces)


def _chunk(content: Optional[str] = None, tool_calls=None, finish_reason: Optional[str] = None):
    delta = SimpleNamespace(content=content, tool_calls=tool_calls, role="assistant")
    return SimpleNamespace(choices=[SimpleNamespace(index=0, delta=delta, finish_reason=finish_reason)])


def _tool_delta(name: Optional[str] = None, arguments: Optional[str] = None):
    fn = SimpleNamespace(name=name, arguments=arguments)
    return [SimpleNamespace(index=0, id="call_echo" if name else None, type="function", function=fn)]


class EchoStream:
    """Async iterator of chat.completion.chunk-shaped objects."""

    def __init__(self, chunks: List[Any], delay: float = 0.0):
        self._chunks = list(chunks)
        self._delay = delay
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self.closed or not self._chunks:
            raise StopAsyncIteration
        if self._delay:
            await asyncio.sleep(self._delay)
        return self._chunks.pop(0)

    async def close(self) -> None:
        self.closed = True


class _Completions:
    def __init__(self, owner: "EchoClient"):
        self._owner = owner

    async def create(self, model: str, messages: List[Dict[str, Any]], stream: bool = False, tools=None, **_: Any):
        user_turns = [m for m in messages if m.get("role") == "user"]
        prompt = _text_of(user_turns[-1]["content"]) if user_turns else ""
        if not stream:
            message = SimpleNamespace(role="assistant", content=prompt)
            return SimpleNamespace(choices=[SimpleNamespace(index=0, message=message, finish_reason="stop")])
        return EchoStream(self._owner.chunks_for(prompt, bool(tools)), delay=self._owner.delay)


class EchoClient:
    """
    Offline stand-in for an OpenAI-compatible client: streams the last user
    message back word by word. With tools offered, `/call NAME {json}` is
    answered with a structured tool call instead.
    """

    def __init__(self, delay: float = 0.0, **_: Any):
        self.delay = delay
        self.chat = SimpleNamespace(completions=_Completions(self))

    def chunks_for(self, prompt: str, tools: bool) -> List[Any]:
        match = _CALL_RE.match(prompt.strip())
        if tools and match:
            name, args = match.group(1), match.group(2).strip() or "{}"
            half = len(args) // 2
            return [
                _chunk(tool_calls=_tool_delta(name=name, arguments="")),
                _chunk(tool_calls=_tool_delta(arguments=args[:half])),
                _chunk(tool_calls=_tool_delta(arguments=args[half:])),
                _chunk(finish_reason="tool_calls"),
            ]
        words = re.findall(r"\S+\s*|\s+", prompt) or [""]
        return [_chunk(content=w) for w in words] + [_chunk(finish_reason="stop")]
