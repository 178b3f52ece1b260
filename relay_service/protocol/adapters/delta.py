"""
Stream adapter for OpenAI-style chat completion chunks.

Each chunk carries `choices[0].delta` with optional `content` and
`tool_calls` fragments plus a `finish_reason`. The adapter is a small state
machine:

    IDLE -> EMITTING            first content delta
    IDLE|EMITTING -> TOOL_ACCUMULATING   first tool-call delta
    TOOL_ACCUMULATING -> TOOL_CALL_COMPLETE   finish_reason == "tool_calls"
                                              (or any stop, see below)

While a tool call accumulates, content deltas are dropped. Providers that
never report finish_reason "tool_calls" (Gemini's compatibility endpoint) are
flagged `infers_tool_completion`: for them a known tool name plus any stop
signal, including the end of the stream, completes the call.
"""
from enum import StrEnum
from typing import Any, List, Optional

from relay_service.core.interfaces import StreamAdapter
from relay_service.core.logging import logger
from relay_service.core.types import Event, PendingToolCall, StreamEvent


class DeltaState(StrEnum):
    IDLE = "idle"
    EMITTING = "emitting"
    TOOL_ACCUMULATING = "tool_accumulating"
    TOOL_CALL_COMPLETE = "tool_call_complete"


def _first_choice(chunk: Any):
    choices = getattr(chunk, "choices", None) or []
    return choices[0] if choices else None


class DeltaContentAdapter(StreamAdapter):
    """Content-only view of a delta stream; tool-call fragments are ignored."""

    def feed(self, chunk: Any) -> List[Event]:
        choice = _first_choice(chunk)
        if choice is None or choice.delta is None:
            return []
        content = getattr(choice.delta, "content", None)
        if content:
            return [{"type": StreamEvent.CONTENT, "data": {"delta": content}}]
        return []

    def finalize(self) -> List[Event]:
        return []


class DeltaStreamAdapter(StreamAdapter):
    def __init__(self, infers_tool_completion: bool = False):
        self.infers_tool_completion = infers_tool_completion
        self.state = DeltaState.IDLE
        self.call = PendingToolCall()
        self._index: Optional[int] = None
        self._dropped = 0

    def _transition(self, state: DeltaState) -> None:
        if state != self.state:
            logger.debug(f"Delta adapter: {self.state} -> {state}")
            self.state = state

    def _complete(self) -> List[Event]:
        self._transition(DeltaState.TOOL_CALL_COMPLETE)
        logger.info(f"Tool call complete: name={self.call.name}, args_len={len(self.call.arguments)}")
        return [{"type": StreamEvent.TOOL_COMPLETE, "data": {"call": self.call}}]

    def _accumulate(self, tool_delta: Any) -> List[Event]:
        events: List[Event] = []
        index = getattr(tool_delta, "index", None)
        if index is None:
            index = 0
        if self._index is None:
            self._index = index
        elif index != self._index:
            logger.warning(f"Rejecting second tool call in one turn (index {index}, active {self._index})")
            return events

        fn = getattr(tool_delta, "function", None)
        if fn is None:
            return events
        if self.call.set_name(getattr(fn, "name", None)):
            logger.info(f"Tool call started: {self.call.name}")
            events.append({"type": StreamEvent.TOOL_STARTED, "data": {"name": self.call.name}})
        self.call.append(getattr(fn, "arguments", None))
        return events

    def feed(self, chunk: Any) -> List[Event]:
        if self.state == DeltaState.TOOL_CALL_COMPLETE:
            self._dropped += 1
            logger.debug(f"Ignoring trailing chunk after tool call ({self._dropped})")
            return []

        choice = _first_choice(chunk)
        if choice is None:
            return []

        events: List[Event] = []
        delta = getattr(choice, "delta", None)
        tool_deltas = getattr(delta, "tool_calls", None) if delta is not None else None
        content = getattr(delta, "content", None) if delta is not None else None

        if tool_deltas:
            if self.state != DeltaState.TOOL_ACCUMULATING:
                self._transition(DeltaState.TOOL_ACCUMULATING)
            for tool_delta in tool_deltas:
                events.extend(self._accumulate(tool_delta))

        if content:
            if self.state == DeltaState.TOOL_ACCUMULATING:
                logger.debug(f"Suppressing content during tool call: {content[:40]!r}")
            else:
                self._transition(DeltaState.EMITTING)
                events.append({"type": StreamEvent.CONTENT, "data": {"delta": content}})

        finish_reason = getattr(choice, "finish_reason", None)
        if self.state == DeltaState.TOOL_ACCUMULATING:
            if finish_reason == "tool_calls":
                events.extend(self._complete())
            elif finish_reason and self.infers_tool_completion and self.call.name:
                events.extend(self._complete())
            elif finish_reason:
                logger.warning(f"Tool call ended with finish_reason={finish_reason}; discarding it")
        return events

    def finalize(self) -> List[Event]:
        if self.state == DeltaState.TOOL_ACCUMULATING:
            if self.infers_tool_completion and self.call.name:
                return self._complete()
            logger.warning(f"Stream ended with an unfinished tool call: {self.call.name or '(no name)'}")
        return []
