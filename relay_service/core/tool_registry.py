from typing import Any, Dict, Iterable, List, Optional

from relay_service.core.errors import ToolRegistryError
from relay_service.core.factory import load
from relay_service.core.logging import logger
from relay_service.core.types import ProviderFamily


class ToolRegistry:
    """Loads the enabled tools from config; read-only once built.

    Lookup is by name and names must be unique. Order follows the registry config.
    """

    def __init__(self, registry_cfg: List[Dict[str, Any]], enabled: Iterable[str]):
        self.tools: Dict[str, Any] = {}
        enabled = list(enabled or [])
        for tcfg in registry_cfg:
            name = tcfg.get("name")
            if name not in enabled:
                continue
            if name in self.tools:
                raise ToolRegistryError(f"Duplicate tool name in registry: {name}")
            impl = tcfg.get("impl", "")
            args = tcfg.get("args", {}) or {}
            try:
                tool = load(impl, **args)
            except (ImportError, AttributeError, TypeError, ValueError) as e:
                logger.warning(f"Skipping tool {name}: cannot load {impl}: {e}")
                continue
            # The registry name is the name the model sees
            if hasattr(tool, "_registry_name"):
                tool._registry_name = name
            if hasattr(tool, "exclude_providers"):
                tool.exclude_providers(tcfg.get("exclude_providers", []) or [])
            self.tools[name] = tool
        logger.info(f"Tool registry ready: {', '.join(self.tools) or '(empty)'}")

    @classmethod
    def from_tools(cls, tools: Iterable[Any]) -> "ToolRegistry":
        """Build a registry from already-constructed tool objects."""
        registry = cls([], [])
        for tool in tools:
            if tool.name in registry.tools:
                raise ToolRegistryError(f"Duplicate tool name in registry: {tool.name}")
            registry.tools[tool.name] = tool
        return registry

    def get(self, name: str) -> Optional[Any]:
        return self.tools.get(name)

    def all(self) -> Dict[str, Any]:
        return self.tools

    def for_provider(self, provider_id: str) -> List[Any]:
        """Tools that may be offered to the given provider's function-calling."""
        return [
            t for t in self.tools.values()
            if not hasattr(t, "available_for") or t.available_for(provider_id)
        ]

    def schemas(self, family: ProviderFamily = ProviderFamily.DELTA, provider_id: str = "") -> List[Dict[str, Any]]:
        """Provider-facing definitions: OpenAI function shape or block-protocol shape."""
        out = []
        for tool in self.for_provider(provider_id):
            if family is ProviderFamily.BLOCK:
                fn = tool.schema["function"]
                out.append({
                    "name": fn["name"],
                    "description": fn["description"],
                    "input_schema": fn["parameters"],
                })
            else:
                out.append(tool.schema)
        return out

    def __contains__(self, name: str) -> bool:
        return name in self.tools

    def __len__(self) -> int:
        return len(self.tools)
