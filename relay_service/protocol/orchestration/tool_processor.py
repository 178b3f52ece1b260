import asyncio
from typing import List, Optional

from relay_service.core.errors import (
    ParameterError,
    ToolError,
    ToolExecutionError,
    ToolIncompleteError,
    ToolResultError,
    ToolTimeoutError,
    UnknownToolError,
)
from relay_service.core.logging import logger
from relay_service.core.tool_registry import ToolRegistry
from relay_service.core.types import ProcessedText, ToolIncomplete
from relay_service.protocol.parsers.markers import MARKER_RE
from relay_service.protocol.parsers.params import parse_params, validate_params

def render_error(error: ToolError) -> str:
    if isinstance(error, (UnknownToolError, ToolIncompleteError, ToolResultError)):
        return f"Error: {error.message}"
    return f"Error executing {error.tool_name}: {error.message}"


class ToolProcessor:
    """Replace every inline tool marker in a text with its tool's output.

    Never raises: each failing marker is replaced by an error line so one bad
    call does not abort the rest of the message.
    """

    def __init__(self, registry: ToolRegistry, timeout: Optional[float] = 30.0):
        self.registry = registry
        self.timeout = timeout

    async def process(self, text: str) -> ProcessedText:
        pieces: List[str] = []
        errors: List[Exception] = []
        cursor = 0
        # Splice by match position against the original text; tool output is never rescanned.
        for match in MARKER_RE.finditer(text):
            name, payload = match.group(1), match.group(2)
            pieces.append(text[cursor : match.start()])
            cursor = match.end()
            try:
                replacement = await self._invoke(name, payload)
            except ToolError as e:
                logger.error(f"Error executing tool {name}: {e.message}")
                errors.append(e)
                replacement = render_error(e)
            except Exception as e:
                logger.exception(f"Unexpected error executing tool {name}")
                wrapped = ToolExecutionError(name, str(e) or type(e).__name__)
                errors.append(wrapped)
                replacement = render_error(wrapped)
            pieces.append(replacement)

        if cursor == 0:
            return ProcessedText(text=text)
        pieces.append(text[cursor:])
        return ProcessedText(text="".join(pieces), errors=errors)

    async def _invoke(self, name: str, payload: str) -> str:
        tool = self.registry.get(name)
        if tool is None:
            raise UnknownToolError(name)

        params = parse_params(tool, payload)
        # Re-validate the model instance as the executor will see it.
        params = validate_params(tool, params.model_dump())

        logger.info(f"Executing tool {name} with {params.model_dump()}")
        result = await self._run(tool, params)

        # Verbatim tools return pre-formatted markup, handed to the client untouched.
        if isinstance(result, str):
            return result
        if isinstance(result, ToolIncomplete):
            if result.reason:
                logger.warning(f"Tool {name} incomplete: {result.reason}")
            raise ToolIncompleteError(name)
        raise ToolResultError(name, type(result).__name__)

    async def _run(self, tool, params):
        try:
            if self.timeout:
                return await asyncio.wait_for(tool.run(params), timeout=self.timeout)
            return await tool.run(params)
        except asyncio.TimeoutError as e:
            raise ToolTimeoutError(tool.name, self.timeout) from e
        except ToolError:
            raise
        except Exception as e:
            raise ToolExecutionError(tool.name, str(e) or type(e).__name__) from e
