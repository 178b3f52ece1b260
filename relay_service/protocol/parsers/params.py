"""
Recover a tool's parameter object from raw, possibly malformed model text.

The raw text is either the free text after an inline `<tool>NAME</tool>` tag
or the JSON argument fragments accumulated from a structured tool-call stream.
The repairs below target what models actually produce in those places:
several JSON objects glued together, and trailing commas.
"""
import json
import re
from typing import Any, Dict

from pydantic import BaseModel, ValidationError

from relay_service.core.errors import ParameterError
from relay_service.core.logging import logger

_GLUED_OBJECTS = re.compile(r"}\s*{")
_BARE_OBJECT = re.compile(r"^{(.+)}$", re.DOTALL)
_TRAILING_COMMA = re.compile(r",\s*([\]}])")


def repair_json(raw: str) -> str:
    """Apply the malformed-JSON repairs; the result wraps objects in an array."""
    text = raw.strip()
    text = _GLUED_OBJECTS.sub("},{", text)
    text = _BARE_OBJECT.sub(r"[{\1}]", text)
    text = _TRAILING_COMMA.sub(r"\1", text)
    return text


def _merge_objects(items: list) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for item in items:
        if isinstance(item, dict):
            merged.update(item)
    return merged


def _single_field_candidate(field: str, raw: str) -> Dict[str, Any]:
    try:
        parsed = json.loads(repair_json(raw))
    except json.JSONDecodeError:
        return {field: raw.strip()}

    if isinstance(parsed, list):
        merged = _merge_objects(parsed)
        if field in merged:
            return {field: merged[field]}
        if not merged and all(isinstance(item, dict) for item in parsed):
            # No arguments at all: let the field default apply.
            return {}
        return {field: merged if merged else parsed}
    if isinstance(parsed, dict) and (field in parsed or not parsed):
        return parsed
    return {field: parsed}


def _multi_field_candidate(tool_name: str, raw: str) -> Any:
    try:
        parsed = json.loads(repair_json(raw))
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse parameters for {tool_name}: {e}")
        raise ParameterError(tool_name, f"invalid JSON parameters: {e.msg}") from e
    if isinstance(parsed, list):
        if not parsed:
            raise ParameterError(tool_name, "invalid JSON parameters: empty array")
        return parsed[0]
    return parsed


def validate_params(tool, candidate: Any) -> BaseModel:
    """Validate a candidate object against the tool's schema."""
    try:
        return tool.params_model.model_validate(candidate)
    except ValidationError as e:
        problems = []
        fields = []
        for err in e.errors():
            loc = ".".join(str(p) for p in err.get("loc", ())) or "(root)"
            fields.append(loc)
            problems.append(f"{loc}: {err.get('msg')}")
        raise ParameterError(
            tool.name, "invalid parameters: " + "; ".join(problems), fields=fields
        ) from e


def parse_params(tool, raw: str) -> BaseModel:
    """
    Parse raw parameter text for `tool` into its validated params model.

    Single-field tools accept free text (the whole trimmed string becomes the
    field value); multi-field tools require JSON. Raises ParameterError.
    """
    if raw is None or not str(raw).strip():
        raise ParameterError(tool.name, "empty parameters")

    fields = list(tool.params_model.model_fields)
    if len(fields) == 1:
        candidate = _single_field_candidate(fields[0], raw)
    else:
        candidate = _multi_field_candidate(tool.name, raw)

    logger.debug(f"Parsed parameters for {tool.name}: {candidate!r}")
    return validate_params(tool, candidate)
