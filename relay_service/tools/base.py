import inspect
from abc import abstractmethod
from typing import Any, Dict, FrozenSet, Iterable, Optional, Type

from pydantic import BaseModel, ConfigDict

from relay_service.core.interfaces import Tool
from relay_service.core.types import ToolResult

# =============================
# Tool Authoring Guidelines
# =============================
#
# To create a new tool:
# 1. Subclass BaseTool, declare a nested `Params(ToolParams)` pydantic model and
#    implement `async def run(self, params) -> ToolResult`.
# 2. The class docstring is the description sent to the model. Field
#    descriptions (Field(description=...)) end up in the JSON schema.
# 3. Return a string to splice into the conversation, or INCOMPLETE when the
#    tool could not produce output (bad input, upstream failure).
# 4. Set `marker_field` when the tool has one well-known parameter (a URL, a
#    query) so structured calls collapse to `<tool>name</tool>value`.
# 5. Register the tool in config/default.yml under tools.registry and enable it.


class ToolParams(BaseModel):
    # Models often send 2+2=4 style answers as bare numbers for string fields.
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")


class BaseTool(Tool):
    Params: Type[ToolParams] = ToolParams
    marker_field: Optional[str] = None
    verbatim: bool = False

    def __init__(self):
        self._registry_name: str | None = None
        self.excluded_providers: FrozenSet[str] = frozenset()

    @property
    def name(self) -> str:
        # Use registry name if set, otherwise fall back to class name
        if self._registry_name:
            return self._registry_name
        return self.__class__.__name__

    @property
    def description(self) -> str:
        return inspect.getdoc(type(self)) or ""

    @property
    def params_model(self) -> Type[BaseModel]:
        return self.Params

    @property
    def field_names(self) -> list[str]:
        return list(self.Params.model_fields)

    def exclude_providers(self, provider_ids: Iterable[str]) -> None:
        self.excluded_providers = frozenset(provider_ids or ())

    def available_for(self, provider_id: str) -> bool:
        return provider_id not in self.excluded_providers

    def parameters_schema(self) -> Dict[str, Any]:
        """JSON schema of Params, as sent to providers."""
        schema = self.Params.model_json_schema()
        schema.pop("title", None)
        for prop in schema.get("properties", {}).values():
            prop.pop("title", None)
        schema.setdefault("required", [])
        return schema

    @staticmethod
    def build_schema(
        function_name: str,
        description: str,
        parameters: dict,
        required: 'Optional[list[str]]' = None,
    ) -> dict:
        """
        Build a standard function tool schema.
        Args:
            function_name: Name of the function/tool.
            description: Description of the tool.
            parameters: Either a full JSON object schema or a properties mapping.
            required: List of required parameter names (properties mapping only).
        Returns:
            dict: Schema for the tool.
        """
        if parameters.get("type") != "object":
            parameters = {
                "type": "object",
                "properties": parameters,
                "required": required or [],
            }
        return {
            "type": "function",
            "function": {
                "name": function_name,
                "description": description,
                "parameters": parameters,
            },
        }

    @property
    def schema(self) -> Dict[str, Any]:
        return self.build_schema(self.name, self.description, self.parameters_schema())

    @abstractmethod
    async def run(self, params: Any) -> ToolResult:
        """Execute the tool with validated params."""
        raise NotImplementedError()
