"""Inline tool marker: `<tool>NAME</tool>PARAMS`."""
import json
import re
from typing import Any, Optional

from relay_service.core.errors import ParameterError
from relay_service.core.types import PendingToolCall

MARKER_OPEN = "<tool>"
MARKER_CLOSE = "</tool>"
# Payload runs up to the next '<' so a following marker is never swallowed.
MARKER_RE = re.compile(r"<tool>(\w+)</tool>([^<]+)")


def format_marker(name: str, payload: str) -> str:
    return f"{MARKER_OPEN}{name}{MARKER_CLOSE}{payload}"


def sanitize_json_string(text: str) -> str:
    """Cut a leading JSON object at its balancing brace, dropping trailing noise.

    Braces inside string literals are not counted as structure.
    """
    trimmed = (text or "").strip()
    if not trimmed.startswith("{"):
        return trimmed
    depth = 0
    in_str = False
    esc = False
    for i, ch in enumerate(trimmed):
        if in_str:
            if esc:
                esc = False
            elif ch == "\\":
                esc = True
            elif ch == '"':
                in_str = False
            continue
        if ch == '"':
            in_str = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return trimmed[: i + 1]
    return trimmed


def _json_payload(obj: Any) -> str:
    # A literal '<' would end the marker payload early; the JSON u003c escape decodes back to it.
    return json.dumps(obj, ensure_ascii=False).replace("<", "\\u003c")


def _reads_as_json(value: str) -> bool:
    try:
        json.loads(value)
    except ValueError:
        return False
    return True


def build_marker(call: PendingToolCall, marker_field: Optional[str] = None) -> str:
    """
    Re-serialize a structured tool call as an inline marker.

    Tools with a single well-known field (a URL, a query) get just that value as
    the payload; every other tool gets its sanitized argument object as JSON.
    Raises ParameterError when the accumulated arguments are not valid JSON.
    """
    if call.raw_marker:
        if not MARKER_RE.fullmatch(call.raw_marker):
            raise ParameterError(call.name, "empty parameters")
        return call.raw_marker

    sanitized = sanitize_json_string(call.arguments)
    try:
        args = json.loads(sanitized) if sanitized else {}
    except json.JSONDecodeError as e:
        raise ParameterError(call.name, "Invalid JSON in tool arguments") from e

    if marker_field and isinstance(args, dict) and marker_field in args:
        value = args[marker_field]
        # A bare value that is itself a JSON literal (null, true, 42) would parse back as one.
        if isinstance(value, str) and value.strip() and "<" not in value and not _reads_as_json(value):
            return format_marker(call.name, value)
        return format_marker(call.name, _json_payload({marker_field: value}))

    return format_marker(call.name, _json_payload(args))
