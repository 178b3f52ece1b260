from typing import Any, Dict, Iterable, List, Optional

from relay_service.core.errors import ConfigurationError, InvalidModelError
from relay_service.core.logging import logger
from relay_service.core.types import ModelDescriptor

# config key -> ModelDescriptor field
_FIELDS = {
    "name": "name",
    "label": "label",
    "provider": "provider_id",
    "stream": "supports_streaming",
    "tools": "supports_tools",
    "system_role": "system_role_name",
    "inline_tools": "inline_tools",
}


def descriptor_from_config(entry: Dict[str, Any]) -> ModelDescriptor:
    kwargs: Dict[str, Any] = {}
    for key, value in entry.items():
        field = _FIELDS.get(key)
        if field is None:
            logger.warning(f"Ignoring unknown model option {key!r} for {entry.get('name')}")
            continue
        kwargs[field] = value
    if not kwargs.get("name") or not kwargs.get("provider_id"):
        raise ConfigurationError(f"Model entry needs a name and a provider: {entry}")
    kwargs.setdefault("label", kwargs["name"])
    if kwargs.get("system_role_name", "system") not in ("system", "user", "assistant"):
        raise ConfigurationError(f"Invalid system_role for model {kwargs['name']}: {kwargs['system_role_name']}")
    return ModelDescriptor(**kwargs)


class ModelRegistry:
    """Read-only table of model descriptors, keyed by model name."""

    def __init__(self, models_cfg: Iterable[Dict[str, Any]], providers: Optional[Iterable[str]] = None):
        self._models: Dict[str, ModelDescriptor] = {}
        available = set(providers) if providers is not None else None
        for entry in models_cfg or []:
            model = descriptor_from_config(entry)
            if model.name in self._models:
                raise ConfigurationError(f"Duplicate model name: {model.name}")
            if available is not None and model.provider_id not in available:
                logger.info(f"Model {model.name} unavailable: provider {model.provider_id} is not configured")
                continue
            self._models[model.name] = model

    @classmethod
    def from_descriptors(cls, models: Iterable[ModelDescriptor]) -> "ModelRegistry":
        registry = cls([])
        for model in models:
            if model.name in registry._models:
                raise ConfigurationError(f"Duplicate model name: {model.name}")
            registry._models[model.name] = model
        return registry

    def get(self, name: str) -> ModelDescriptor:
        model = self._models.get(name)
        if model is None:
            raise InvalidModelError(name)
        return model

    def all(self) -> List[ModelDescriptor]:
        return list(self._models.values())

    def __contains__(self, name: str) -> bool:
        return name in self._models

    def __len__(self) -> int:
        return len(self._models)
