import json
from typing import Any, Dict

from relay_service.core.types import StreamEvent

DONE_FRAME = b"data: [DONE]\n\n"


class SseEmitter:
    """Emitter producing server-sent-event frames: `data: <json>\\n\\n`."""

    def frame(self, payload: Dict[str, Any]) -> bytes:
        return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode("utf-8")

    def content(self, text: str) -> bytes:
        return self.frame({"type": "content", "content": text})

    def tool_call(self, name: str) -> bytes:
        return self.frame({"type": "tool_call", "tool_call": {"function": {"name": name}}})

    def error(self, message: str) -> bytes:
        return self.frame({"type": "error", "content": message})

    def emit(self, event: Dict[str, Any]) -> bytes:
        """Frame one normalized event."""
        kind = event.get("type")
        data = event.get("data", {}) or {}
        if kind == StreamEvent.CONTENT:
            return self.content(data.get("delta", ""))
        if kind == StreamEvent.TOOL_STARTED:
            return self.tool_call(data.get("name", ""))
        if kind == StreamEvent.ERROR:
            return self.error(data.get("message", ""))
        if kind == StreamEvent.DONE:
            return self.done()
        raise ValueError(f"Event type {kind!r} has no client frame")

    def done(self) -> bytes:
        return DONE_FRAME
