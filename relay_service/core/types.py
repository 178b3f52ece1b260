from dataclasses import dataclass, field
from enum import StrEnum
from typing import Annotated, Any, Dict, List, Literal, TypedDict, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StreamEvent(StrEnum):
    CONTENT = "content"
    TOOL_STARTED = "tool_started"
    TOOL_COMPLETE = "tool_complete"
    ERROR = "error"
    DONE = "done"


class Event(TypedDict, total=False):
    type: str  # StreamEvent value
    data: Dict[str, Any]


class ProviderFamily(StrEnum):
    DELTA = "delta"  # OpenAI-style delta/tool_calls chunks
    BLOCK = "block"  # block start/delta/stop events


# --- Messages -----------------------------------------------------------------


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageUrlPart(BaseModel):
    type: Literal["image_url"] = "image_url"
    url: str


class FileUrlPart(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["file_url"] = "file_url"
    url: str
    name: str
    mime_type: str = Field(..., alias="mimeType")


ContentPart = Annotated[Union[TextPart, ImageUrlPart, FileUrlPart], Field(discriminator="type")]


class Message(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: Union[str, List[ContentPart]] = Field(...)

    @field_validator("content")
    @classmethod
    def _non_empty_parts(cls, value):
        if isinstance(value, list) and not value:
            raise ValueError("content list must not be empty")
        return value

    def text(self) -> str:
        """Content flattened to text; non-text parts become short references."""
        if isinstance(self.content, str):
            return self.content
        pieces = []
        for part in self.content:
            if isinstance(part, TextPart):
                pieces.append(part.text)
            elif isinstance(part, ImageUrlPart):
                pieces.append(f"[Image: {part.url}]")
            else:
                pieces.append(f"[File: {part.name}]({part.url})")
        return "\n".join(pieces)


# --- Models and tool calls ----------------------------------------------------


@dataclass(frozen=True)
class ModelDescriptor:
    name: str
    label: str
    provider_id: str
    supports_streaming: bool = True
    supports_tools: bool = True
    system_role_name: str = "system"
    # Model is told (via the prompt) to write <tool>NAME</tool>PARAMS itself.
    inline_tools: bool = False


@dataclass
class PendingToolCall:
    name: str = ""
    arguments: str = ""
    # Set when the call was read from text (<tool> tag) rather than a structured API.
    raw_marker: str = ""

    def set_name(self, name: str | None) -> bool:
        """First non-empty name wins. Returns True when the name was just set."""
        if name and not self.name:
            self.name = name
            return True
        return False

    def append(self, fragment: str | None) -> None:
        if fragment:
            self.arguments += fragment


@dataclass(frozen=True)
class ToolIncomplete:
    """Sentinel result: the tool could not produce output."""

    finished: bool = False
    reason: str = ""


INCOMPLETE = ToolIncomplete()

ToolResult = Union[str, ToolIncomplete]


@dataclass
class ProcessedText:
    text: str
    errors: List[Exception] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class ProviderBinding:
    """One configured provider: wire family, provider client and its quirks."""

    provider_id: str
    family: ProviderFamily
    provider: Any  # ChatProvider
    infers_tool_completion: bool = False
