# Ensure project root is in sys.path for test imports
import sys
import os
from types import SimpleNamespace

import pytest

project_root = os.path.dirname(os.path.abspath(__file__))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

# Tests run against the packaged defaults only
os.environ["RELAY_IGNORE_DEV_CONFIG"] = "true"

from pydantic import Field  # noqa: E402

from relay_service.core.interfaces import ChatProvider  # noqa: E402
from relay_service.core.models import ModelRegistry  # noqa: E402
from relay_service.core.tool_registry import ToolRegistry  # noqa: E402
from relay_service.core.types import (  # noqa: E402
    INCOMPLETE,
    ModelDescriptor,
    ProviderBinding,
    ProviderFamily,
)
from relay_service.providers.dummy.provider import EchoClient  # noqa: E402
from relay_service.providers.openai_compat.provider import OpenAICompatProvider  # noqa: E402
from relay_service.tools.base import BaseTool, ToolParams  # noqa: E402
from relay_service.tools.calculator import CalculatorTool  # noqa: E402


# --- Chunk builders ---------------------------------------------------------


def delta_chunk(content=None, tool_calls=None, finish_reason=None):
    delta = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta, finish_reason=finish_reason)])


def tool_delta(index=0, name=None, arguments=None):
    return SimpleNamespace(index=index, function=SimpleNamespace(name=name, arguments=arguments))


def block_event(kind, index=0, **fields):
    return SimpleNamespace(type=kind, index=index, **fields)


def text_block_delta(text, index=0):
    return block_event("content_block_delta", index, delta=SimpleNamespace(type="text_delta", text=text))


def json_block_delta(partial, index=1):
    return block_event("content_block_delta", index, delta=SimpleNamespace(type="input_json_delta", partial_json=partial))


def tool_block_start(name, index=1):
    return block_event("content_block_start", index, content_block=SimpleNamespace(type="tool_use", name=name, id="tu_1"))


def stop_event(reason):
    return SimpleNamespace(type="message_delta", delta=SimpleNamespace(stop_reason=reason))


# --- Fake tools -------------------------------------------------------------


class EchoParamsTool(BaseTool):
    """Returns its single parameter."""

    marker_field = "text"

    class Params(ToolParams):
        text: str = Field(..., description="Text to return")

    async def run(self, params):
        return params.text


class PairTool(BaseTool):
    """Two required fields."""

    class Params(ToolParams):
        a: int
        b: str

    async def run(self, params):
        return f"{params.a}:{params.b}"


class BoomTool(BaseTool):
    """Always fails."""

    class Params(ToolParams):
        text: str

    async def run(self, params):
        raise RuntimeError("boom")


class SentinelTool(BaseTool):
    """Cannot finish."""

    class Params(ToolParams):
        text: str

    async def run(self, params):
        return INCOMPLETE


class DictTool(BaseTool):
    """Returns a mapping instead of text."""

    class Params(ToolParams):
        text: str

    async def run(self, params):
        return {"text": params.text}


def named(tool, name):
    tool._registry_name = name
    return tool


@pytest.fixture
def fake_tools():
    return [
        named(EchoParamsTool(), "echo_tool"),
        named(PairTool(), "pair_tool"),
        named(BoomTool(), "boom_tool"),
        named(SentinelTool(), "sentinel_tool"),
        named(DictTool(), "dict_tool"),
        named(CalculatorTool(), "calculator"),
    ]


@pytest.fixture
def tool_registry(fake_tools):
    return ToolRegistry.from_tools(fake_tools)


# --- Fake providers ---------------------------------------------------------


class ScriptedProvider(ChatProvider):
    """Plays back one scripted chunk list per stream() call and records the requests."""

    def __init__(self, provider_id, scripts, completion="", error=None):
        self.provider_id = provider_id
        self.scripts = list(scripts)
        self.completion = completion
        self.error = error
        self.calls = []

    async def stream(self, model, messages, tools=None):
        self.calls.append({"model": model.name, "messages": messages, "tools": tools})
        chunks = self.scripts.pop(0) if self.scripts else []
        for chunk in chunks:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk

    async def complete(self, model, messages):
        self.calls.append({"model": model.name, "messages": messages, "tools": None})
        return self.completion


@pytest.fixture
def echo_binding():
    provider = OpenAICompatProvider(provider_id="echo", client=EchoClient())
    return ProviderBinding(provider_id="echo", family=ProviderFamily.DELTA, provider=provider)


@pytest.fixture
def echo_models():
    return ModelRegistry.from_descriptors([
        ModelDescriptor(name="echo", label="Echo", provider_id="echo", supports_tools=False, inline_tools=True),
        ModelDescriptor(name="echo-tools", label="Echo (tools)", provider_id="echo"),
        ModelDescriptor(name="echo-plain", label="Echo (plain)", provider_id="echo", supports_tools=False),
    ])
