"""Error taxonomy for the relay.

Tool-side errors (ParameterError, UnknownToolError, ToolExecutionError) are
rendered inline by the tool processor and never reach the transport.
Provider-side errors end the stream in progress and become an error frame.
"""
from typing import List, Optional


class RelayError(Exception):
    """Base class for every error raised by the relay."""


class ConfigurationError(RelayError):
    """Invalid or inconsistent configuration detected at start-up."""


class ToolRegistryError(ConfigurationError):
    """Tool registry could not be built (e.g. duplicate tool names)."""


class InvalidModelError(RelayError):
    def __init__(self, model_name: str):
        self.model_name = model_name
        super().__init__(f"Invalid model name: {model_name}")


class ToolError(RelayError):
    """Base for errors that are rendered inline in place of a tool marker."""

    def __init__(self, tool_name: str, message: str):
        self.tool_name = tool_name
        self.message = message
        super().__init__(message)


class UnknownToolError(ToolError):
    def __init__(self, tool_name: str):
        super().__init__(tool_name, f'Tool "{tool_name}" not found')


class ParameterError(ToolError):
    def __init__(self, tool_name: str, message: str, fields: Optional[List[str]] = None):
        super().__init__(tool_name, message)
        self.fields = fields or []


class ToolExecutionError(ToolError):
    """The tool executor raised, or returned something unusable."""


class ToolTimeoutError(ToolExecutionError):
    def __init__(self, tool_name: str, timeout: float):
        super().__init__(tool_name, f"timed out after {timeout:g}s")
        self.timeout = timeout


class ProviderStreamError(RelayError):
    def __init__(self, provider_id: str, message: str):
        self.provider_id = provider_id
        super().__init__(f"{provider_id}: {message}")


class ProviderTimeoutError(ProviderStreamError):
    def __init__(self, provider_id: str, timeout: float):
        super().__init__(provider_id, f"no data received for {timeout:g}s")
        self.timeout = timeout


class ToolIncompleteError(ToolExecutionError):
    """The tool returned the {finished: false} sentinel."""

    def __init__(self, tool_name: str):
        super().__init__(tool_name, "Tool execution incomplete")


class ToolResultError(ToolExecutionError):
    """The tool returned something that is neither text nor the sentinel."""

    def __init__(self, tool_name: str, result_type: str):
        super().__init__(tool_name, "Unable to process tool response")
        self.result_type = result_type
