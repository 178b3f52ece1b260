import asyncio
from contextlib import aclosing
from typing import Any, AsyncGenerator, AsyncIterator, Dict, Iterable, List, Optional

from relay_service.core.errors import ParameterError, ProviderTimeoutError, RelayError
from relay_service.core.logging import logger
from relay_service.core.models import ModelRegistry
from relay_service.core.tool_registry import ToolRegistry
from relay_service.core.types import (
    Event,
    Message,
    ModelDescriptor,
    PendingToolCall,
    ProviderBinding,
    ProviderFamily,
    StreamEvent,
)
from relay_service.protocol.adapters.block import BlockContentAdapter, BlockStreamAdapter
from relay_service.protocol.adapters.delta import DeltaContentAdapter, DeltaStreamAdapter
from relay_service.protocol.orchestration.emitter import SseEmitter
from relay_service.protocol.orchestration.tool_processor import ToolProcessor, render_error
from relay_service.protocol.parsers.markers import build_marker
from relay_service.protocol.parsers.sliding import InlineToolScanner
from relay_service.protocol.prompts import Prompts

DEFAULT_PASSTHROUGH_TOOLS = ("image_generator", "chart_generator", "moby", "conversation_summary_saver")

SUMMARY_SEPARATOR = "\n\n"


def make_adapter(binding: ProviderBinding, tools_enabled: bool):
    """Adapter for the binding's wire family; content-only when no tools were offered."""
    if binding.family is ProviderFamily.BLOCK:
        return BlockStreamAdapter() if tools_enabled else BlockContentAdapter()
    if tools_enabled:
        return DeltaStreamAdapter(infers_tool_completion=binding.infers_tool_completion)
    return DeltaContentAdapter()


async def relay_events(
    chunks: AsyncIterator[Any],
    adapter,
    provider_id: str,
    idle_timeout: Optional[float] = None,
) -> AsyncGenerator[Event, None]:
    """Read raw provider chunks through `adapter`, bounding the wait for each chunk."""
    agen = chunks.__aiter__()
    try:
        while True:
            try:
                if idle_timeout:
                    chunk = await asyncio.wait_for(agen.__anext__(), timeout=idle_timeout)
                else:
                    chunk = await agen.__anext__()
            except StopAsyncIteration:
                break
            except asyncio.TimeoutError as e:
                raise ProviderTimeoutError(provider_id, idle_timeout) from e
            for evt in adapter.feed(chunk):
                yield evt
        for evt in adapter.finalize():
            yield evt
    finally:
        aclose = getattr(agen, "aclose", None)
        if aclose is not None:
            await aclose()


async def orchestrate(
    messages: List[Message],
    model_name: str,
    models: ModelRegistry,
    bindings: Dict[str, ProviderBinding],
    tools: ToolRegistry,
    processor: ToolProcessor,
    prompts: Optional[Prompts] = None,
    passthrough_tools: Iterable[str] = DEFAULT_PASSTHROUGH_TOOLS,
    idle_timeout: Optional[float] = None,
) -> AsyncGenerator[bytes, None]:
    """
    Core orchestration: first stream -> (tool call) -> tool -> passthrough or second stream.
    Yields SSE frames and always ends with exactly one [DONE].
    """
    emitter = SseEmitter()
    turn = _Turn(
        models=models,
        bindings=bindings,
        tools=tools,
        processor=processor,
        prompts=prompts or Prompts(),
        passthrough=frozenset(passthrough_tools or ()),
        idle_timeout=idle_timeout,
        emitter=emitter,
    )
    try:
        logger.info(f"Orchestration started: model_name={model_name}, messages={len(messages)}")
        async with aclosing(turn.run(messages, model_name)) as frames:
            async for frame in frames:
                yield frame
    except RelayError as e:
        logger.error(f"Orchestration failed: {e}")
        yield emitter.error(str(e))
    except Exception as e:
        logger.exception(f"Exception in orchestrate: model_name={model_name}, error={e}")
        yield emitter.error("Error processing request")

    logger.info(f"Orchestration complete: model_name={model_name}")
    yield emitter.done()


class _Turn:
    """State for one request: which model, whether content has been shown."""

    def __init__(self, models, bindings, tools, processor, prompts, passthrough, idle_timeout, emitter):
        self.models = models
        self.bindings = bindings
        self.tools = tools
        self.processor = processor
        self.prompts = prompts
        self.passthrough = passthrough
        self.idle_timeout = idle_timeout
        self.emitter = emitter
        self.content_shown = False

    def _binding(self, model: ModelDescriptor) -> ProviderBinding:
        binding = self.bindings.get(model.provider_id)
        if binding is None:
            raise RelayError(f"No provider configured for model {model.name}")
        return binding

    async def run(self, messages: List[Message], model_name: str) -> AsyncGenerator[bytes, None]:
        # Raises InvalidModelError before any provider is touched.
        model = self.models.get(model_name)
        binding = self._binding(model)

        if not model.supports_streaming:
            async for frame in self._complete_once(model, binding, messages):
                yield frame
            return

        call: Optional[PendingToolCall] = None
        async with aclosing(self._first_stream(model, binding, messages)) as first:
            async for frame_or_call in first:
                if isinstance(frame_or_call, PendingToolCall):
                    call = frame_or_call
                else:
                    yield frame_or_call

        if call is None:
            return
        async for frame in self._handle_tool_call(model, binding, call):
            yield frame

    def _first_stream_tools(self, model: ModelDescriptor, binding: ProviderBinding) -> Dict[str, Any]:
        if not model.supports_tools and not model.inline_tools:
            return {}
        return {t.name: t for t in self.tools.for_provider(binding.provider_id)}

    async def _first_stream(self, model: ModelDescriptor, binding: ProviderBinding, messages: List[Message]):
        offered = self._first_stream_tools(model, binding)
        instruction = self.prompts.instruction(offered, inline=model.inline_tools)
        history = [Message(role=model.system_role_name, content=instruction), *messages]

        structured = bool(offered) and not model.inline_tools
        tool_defs = self.tools.schemas(binding.family, binding.provider_id) if structured else None
        adapter = make_adapter(binding, tools_enabled=structured)
        if model.inline_tools and offered:
            adapter = InlineToolScanner(adapter)
        logger.info(
            f"First stream: model={model.name}, family={binding.family}, "
            f"adapter={type(adapter).__name__}, tools={len(tool_defs or offered)}"
        )

        call: Optional[PendingToolCall] = None
        chunks = binding.provider.stream(model, history, tool_defs)
        events = relay_events(chunks, adapter, binding.provider_id, self.idle_timeout)
        async with aclosing(events):
            async for evt in events:
                kind = evt.get("type")
                data = evt.get("data", {})
                if kind == StreamEvent.CONTENT:
                    if data.get("delta"):
                        self.content_shown = True
                        yield self.emitter.emit(evt)
                elif kind == StreamEvent.TOOL_STARTED:
                    yield self.emitter.emit(evt)
                elif kind == StreamEvent.TOOL_COMPLETE:
                    if call is None:
                        call = data["call"]
                    else:
                        logger.warning(f"Ignoring second completed tool call: {data['call'].name}")
                elif kind == StreamEvent.ERROR:
                    logger.error(f"Stream adapter error: {data}")
                    yield self.emitter.emit(evt)
        # The first stream is fully drained before any tool runs.
        if call is not None:
            yield call

    async def _handle_tool_call(self, model: ModelDescriptor, binding: ProviderBinding, call: PendingToolCall):
        tool = self.tools.get(call.name)
        try:
            marker = build_marker(call, getattr(tool, "marker_field", None))
        except ParameterError as e:
            logger.error(f"Cannot build tool marker for {call.name}: {e.message}")
            yield self.emitter.content(render_error(e))
            return

        logger.info(f"Processing tool call: {marker[:200]}")
        processed = await self.processor.process(marker)

        if not processed.ok:
            # Errors are shown as-is rather than summarized.
            yield self.emitter.content(processed.text)
            return

        if call.name in self.passthrough:
            logger.info(f"Passthrough tool {call.name}: sending output directly")
            yield self.emitter.content(processed.text)
            return

        async for frame in self._second_stream(model, binding, processed.text):
            yield frame

    async def _second_stream(self, model: ModelDescriptor, binding: ProviderBinding, tool_output: str):
        history = [
            Message(role=model.system_role_name, content=self.prompts.summarizer),
            Message(role="user", content=tool_output),
        ]
        if self.content_shown:
            yield self.emitter.content(SUMMARY_SEPARATOR)

        logger.info(f"Second stream: model={model.name}, input_len={len(tool_output)}")
        adapter = make_adapter(binding, tools_enabled=False)
        chunks = binding.provider.stream(model, history, None)
        events = relay_events(chunks, adapter, binding.provider_id, self.idle_timeout)
        async with aclosing(events):
            async for evt in events:
                if evt.get("type") == StreamEvent.CONTENT and evt["data"].get("delta"):
                    yield self.emitter.emit(evt)

    async def _complete_once(self, model: ModelDescriptor, binding: ProviderBinding, messages: List[Message]):
        offered = self._first_stream_tools(model, binding)
        # No structured tools without streaming; inline markers in the reply still run.
        instruction = self.prompts.instruction(offered, inline=bool(offered))
        history = [Message(role=model.system_role_name, content=instruction), *messages]
        text = await binding.provider.complete(model, history)
        processed = await self.processor.process(text)
        if processed.text:
            yield self.emitter.content(processed.text)
