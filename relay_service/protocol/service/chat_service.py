from contextlib import aclosing
from typing import Any, AsyncGenerator, Dict, Iterable, List, Optional

from relay_service.core.models import ModelRegistry
from relay_service.core.tool_registry import ToolRegistry
from relay_service.core.types import Message, ProviderBinding
from relay_service.protocol.orchestration.orchestrator import DEFAULT_PASSTHROUGH_TOOLS, orchestrate
from relay_service.protocol.orchestration.tool_processor import ToolProcessor
from relay_service.protocol.prompts import Prompts


class ChatService:
    def __init__(
        self,
        bindings: Dict[str, ProviderBinding],
        models: ModelRegistry,
        tools: ToolRegistry,
        prompts: Optional[Prompts] = None,
        passthrough_tools: Iterable[str] = DEFAULT_PASSTHROUGH_TOOLS,
        tool_timeout: Optional[float] = 30.0,
        stream_idle_timeout: Optional[float] = None,
    ):
        """Initialize with provider bindings, model table and tool registry"""
        self.bindings = bindings
        self.models = models
        self.tools = tools
        self.prompts = prompts or Prompts()
        self.passthrough_tools = tuple(passthrough_tools or ())
        self.stream_idle_timeout = stream_idle_timeout
        self.processor = ToolProcessor(tools, timeout=tool_timeout)

    async def stream(self, messages: List[Message], model_name: str) -> AsyncGenerator[bytes, None]:
        """Drive the orchestration to stream SSE frames"""
        frames = orchestrate(
            messages=messages,
            model_name=model_name,
            models=self.models,
            bindings=self.bindings,
            tools=self.tools,
            processor=self.processor,
            prompts=self.prompts,
            passthrough_tools=self.passthrough_tools,
            idle_timeout=self.stream_idle_timeout,
        )
        async with aclosing(frames):
            async for frame in frames:
                yield frame

    # --- Catalog ---

    def list_models(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": m.name,
                "label": m.label,
                "provider": m.provider_id,
                "stream": m.supports_streaming,
                "tools": m.supports_tools or m.inline_tools,
            }
            for m in self.models.all()
        ]

    def list_tools(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": name,
                "description": tool.description,
                "parameters": tool.schema["function"]["parameters"],
                "passthrough": name in self.passthrough_tools,
                "verbatim": bool(getattr(tool, "verbatim", False)),
            }
            for name, tool in self.tools.all().items()
        ]

    def readiness(self) -> Dict[str, Any]:
        return {
            "ready": bool(self.bindings) and len(self.models) > 0,
            "providers": sorted(self.bindings),
            "models": len(self.models),
            "tools": len(self.tools),
        }
