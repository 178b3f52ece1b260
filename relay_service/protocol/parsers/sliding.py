import re
from typing import Any, List, Optional

from relay_service.core.interfaces import StreamAdapter
from relay_service.core.logging import logger
from relay_service.core.types import Event, PendingToolCall, StreamEvent
from relay_service.protocol.parsers.markers import MARKER_CLOSE, MARKER_OPEN, format_marker

_TOOL_NAME = re.compile(r"\w+")


def _partial_prefix_len(buf: str, marker: str) -> int:
    """Length of the longest suffix of buf that is a proper prefix of marker."""
    for n in range(min(len(marker) - 1, len(buf)), 0, -1):
        if marker.startswith(buf[-n:]):
            return n
    return 0


class InlineToolScanner(StreamAdapter):
    """
    Sliding scanner for models that write `<tool>NAME</tool>PARAMS` in their text.
    - Relays text before the marker as CONTENT
    - Holds back a partial `<tool>` split across chunk boundaries
    - Emits TOOL_STARTED once NAME is complete
    - Captures PARAMS up to the next '<' (or end of stream) and emits TOOL_COMPLETE
    - Drops any text after the call; one call per turn

    Wraps a content adapter so it can be fed raw provider chunks.
    """

    MAX_NAME_CHARS = 64

    def __init__(self, inner: Optional[StreamAdapter] = None, max_tool_chars: int = 32768):
        self.inner = inner
        self.mode = "text"  # "text" | "name" | "payload" | "done"
        self.buf = ""
        self.max_tool_chars = max_tool_chars
        self.call = PendingToolCall()
        self._dropped = 0

    def feed(self, chunk: Any) -> List[Event]:
        if self.inner is None:
            return self.feed_text(chunk)
        events: List[Event] = []
        for evt in self.inner.feed(chunk):
            if evt.get("type") == StreamEvent.CONTENT:
                events.extend(self.feed_text(evt["data"].get("delta", "")))
            else:
                events.append(evt)
        return events

    def _complete(self, payload: str) -> List[Event]:
        self.mode = "done"
        self.call.append(payload)
        self.call.raw_marker = format_marker(self.call.name, payload)
        logger.info(f"Scanner: inline tool call captured: name={self.call.name}, payload_len={len(payload)}")
        return [{"type": StreamEvent.TOOL_COMPLETE, "data": {"call": self.call}}]

    def feed_text(self, text: str) -> List[Event]:
        events: List[Event] = []
        if not text:
            return events
        if self.mode == "done":
            self._dropped += len(text)
            logger.debug(f"Scanner: dropping text after tool call ({self._dropped} chars)")
            return events

        self.buf += text
        while True:
            if self.mode == "text":
                idx = self.buf.find(MARKER_OPEN)
                if idx != -1:
                    if idx > 0:
                        events.append({"type": StreamEvent.CONTENT, "data": {"delta": self.buf[:idx]}})
                    self.buf = self.buf[idx + len(MARKER_OPEN) :]
                    self.mode = "name"
                    logger.debug("Scanner: marker open detected")
                    continue
                hold = _partial_prefix_len(self.buf, MARKER_OPEN)
                emit = self.buf[: len(self.buf) - hold]
                if emit:
                    events.append({"type": StreamEvent.CONTENT, "data": {"delta": emit}})
                self.buf = self.buf[len(self.buf) - hold :]
                break

            if self.mode == "name":
                idx = self.buf.find(MARKER_CLOSE)
                if idx == -1:
                    if len(self.buf) > self.MAX_NAME_CHARS:
                        # Not a marker after all; give the text back.
                        logger.warning(f"Scanner: no closing tag after {MARKER_OPEN!r}, treating as text")
                        events.append({"type": StreamEvent.CONTENT, "data": {"delta": MARKER_OPEN}})
                        self.mode = "text"
                        continue
                    break
                name = self.buf[:idx]
                if not _TOOL_NAME.fullmatch(name):
                    logger.warning(f"Scanner: invalid tool name {name!r}, treating as text")
                    events.append({"type": StreamEvent.CONTENT, "data": {"delta": MARKER_OPEN}})
                    self.mode = "text"
                    continue
                self.call.set_name(name)
                self.buf = self.buf[idx + len(MARKER_CLOSE) :]
                self.mode = "payload"
                logger.info(f"Scanner: tool call started: {name}")
                events.append({"type": StreamEvent.TOOL_STARTED, "data": {"name": name}})
                continue

            if self.mode == "payload":
                idx = self.buf.find("<")
                if idx != -1:
                    payload = self.buf[:idx]
                    self._dropped += len(self.buf) - idx
                    self.buf = ""
                    events.extend(self._complete(payload))
                elif len(self.buf) > self.max_tool_chars:
                    logger.error(f"Scanner: tool payload truncated, size={len(self.buf)}")
                    self.buf = ""
                    self.mode = "done"
                    events.append({"type": StreamEvent.ERROR, "data": {"message": "Tool payload too large"}})
                break

            break
        return events

    def finalize(self) -> List[Event]:
        events: List[Event] = []
        if self.inner is not None:
            for evt in self.inner.finalize():
                if evt.get("type") == StreamEvent.CONTENT:
                    events.extend(self.feed_text(evt["data"].get("delta", "")))
                else:
                    events.append(evt)

        if self.mode == "text" and self.buf:
            events.append({"type": StreamEvent.CONTENT, "data": {"delta": self.buf}})
        elif self.mode == "name":
            logger.warning("Scanner finalize: unterminated tool tag, flushing as text")
            events.append({"type": StreamEvent.CONTENT, "data": {"delta": MARKER_OPEN + self.buf}})
        elif self.mode == "payload":
            events.extend(self._complete(self.buf))
        self.buf = ""
        return events
