from abc import ABC, abstractmethod
from typing import Any, AsyncGenerator, Dict, List, Optional, Type

from pydantic import BaseModel

from relay_service.core.types import Event, Message, ModelDescriptor, ToolResult


class ChatProvider(ABC):
    """One provider wire protocol bound to one SDK client."""

    provider_id: str

    @abstractmethod
    def stream(
        self,
        model: ModelDescriptor,
        messages: List[Message],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> AsyncGenerator[Any, None]:
        """Stream raw provider chunks, to be read by the family's StreamAdapter.

        With ``tools`` None no tool definitions are sent.
        """
        ...

    @abstractmethod
    async def complete(self, model: ModelDescriptor, messages: List[Message]) -> str:
        """Single non-streaming completion, returning the assistant text."""
        ...


class StreamAdapter(ABC):
    @abstractmethod
    def feed(self, chunk: Any) -> List[Event]:
        """Ingest one raw provider chunk and return zero or more normalized events"""
        ...

    @abstractmethod
    def finalize(self) -> List[Event]:
        """Flush any residual state at end of stream and return final events"""
        ...


class Tool(ABC):
    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @property
    @abstractmethod
    def params_model(self) -> Type[BaseModel]:
        ...

    @property
    @abstractmethod
    def schema(self) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def run(self, params: BaseModel) -> ToolResult:
        ...
