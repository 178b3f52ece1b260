"""
Stream adapter for block-structured message events (Anthropic Messages API).

Unlike the delta family the tool name arrives up front in
`content_block_start`, so it is disclosed immediately; the arguments follow as
`input_json_delta` fragments and `message_delta` with stop_reason "tool_use"
closes the call.
"""
from typing import Any, List

from relay_service.core.interfaces import StreamAdapter
from relay_service.core.logging import logger
from relay_service.core.types import Event, PendingToolCall, StreamEvent


def _text_delta(chunk: Any) -> str:
    if getattr(chunk, "type", None) != "content_block_delta":
        return ""
    delta = getattr(chunk, "delta", None)
    if getattr(delta, "type", None) == "text_delta":
        return getattr(delta, "text", "") or ""
    return ""


class BlockContentAdapter(StreamAdapter):
    """Relays text deltas only."""

    def feed(self, chunk: Any) -> List[Event]:
        text = _text_delta(chunk)
        if text:
            return [{"type": StreamEvent.CONTENT, "data": {"delta": text}}]
        return []

    def finalize(self) -> List[Event]:
        return []


class BlockStreamAdapter(StreamAdapter):
    def __init__(self):
        self.call = PendingToolCall()
        self.accumulating = False
        self.completed = False
        self._tool_block_index = None

    def feed(self, chunk: Any) -> List[Event]:
        kind = getattr(chunk, "type", None)

        if kind == "content_block_start":
            block = getattr(chunk, "content_block", None)
            if getattr(block, "type", None) != "tool_use":
                return []
            if self.accumulating or self.completed:
                logger.warning(f"Rejecting second tool_use block in one turn: {getattr(block, 'name', '')}")
                return []
            self.accumulating = True
            self._tool_block_index = getattr(chunk, "index", None)
            self.call.set_name(getattr(block, "name", ""))
            logger.info(f"Tool call started: {self.call.name}")
            return [{"type": StreamEvent.TOOL_STARTED, "data": {"name": self.call.name}}]

        if kind == "content_block_delta":
            delta = getattr(chunk, "delta", None)
            if getattr(delta, "type", None) == "input_json_delta":
                index = getattr(chunk, "index", None)
                if self.accumulating and (self._tool_block_index is None or index == self._tool_block_index):
                    self.call.append(getattr(delta, "partial_json", ""))
                return []
            text = _text_delta(chunk)
            if text:
                return [{"type": StreamEvent.CONTENT, "data": {"delta": text}}]
            return []

        if kind == "message_delta":
            stop_reason = getattr(getattr(chunk, "delta", None), "stop_reason", None)
            if stop_reason == "tool_use" and self.accumulating and not self.completed:
                self.completed = True
                self.accumulating = False
                logger.info(f"Tool call complete: name={self.call.name}, args_len={len(self.call.arguments)}")
                return [{"type": StreamEvent.TOOL_COMPLETE, "data": {"call": self.call}}]
        return []

    def finalize(self) -> List[Event]:
        if self.accumulating and not self.completed:
            logger.warning(f"Stream ended before tool call {self.call.name} completed")
        return []
