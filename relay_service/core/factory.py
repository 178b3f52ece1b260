from importlib import import_module
from typing import Any, Dict, Mapping, Optional
import inspect
import os

from relay_service.core.config import load_settings
from relay_service.core.errors import ConfigurationError
from relay_service.core.logging import logger
from relay_service.core.types import ProviderBinding, ProviderFamily

PROVIDER_CLASSES = {
    ProviderFamily.DELTA: "relay_service.providers.openai_compat.provider.OpenAICompatProvider",
    ProviderFamily.BLOCK: "relay_service.providers.anthropic.provider.AnthropicProvider",
}


def load(dotted: str, **kwargs: Any) -> Any:
    """Import a dotted path and instantiate the class if callable.
    Filters kwargs to match the constructor signature (unless **kwargs is accepted)."""
    module, cls = dotted.rsplit(".", 1)
    mod = import_module(module)
    obj = getattr(mod, cls)

    if isinstance(obj, type):
        # class: inspect __init__ signature
        sig = inspect.signature(obj.__init__)
        params = list(sig.parameters.values())
        accepts_kwargs = any(p.kind == p.VAR_KEYWORD for p in params)
        if accepts_kwargs:
            return obj(**kwargs)
        # Filter only accepted params (skip 'self')
        allowed = {p.name for p in params if p.kind in (p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY) and p.name != "self"}
        filtered = {k: v for k, v in kwargs.items() if k in allowed}
        return obj(**filtered)

    # callable or object (rare)
    return obj


def build_provider_bindings(
    providers_cfg: Mapping[str, Dict[str, Any]],
    limits: Optional[Dict[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, ProviderBinding]:
    """providerId -> ProviderBinding. Providers whose API key is missing are skipped."""
    environ = os.environ if environ is None else environ
    limits = limits or {}
    bindings: Dict[str, ProviderBinding] = {}
    for provider_id, pcfg in (providers_cfg or {}).items():
        pcfg = pcfg or {}
        try:
            family = ProviderFamily(pcfg.get("family", ProviderFamily.DELTA))
        except ValueError as e:
            raise ConfigurationError(f"Provider {provider_id}: unknown family {pcfg.get('family')!r}") from e

        args = dict(pcfg.get("args", {}) or {})
        key_env = pcfg.get("api_key_env")
        if key_env:
            api_key = environ.get(key_env)
            if not api_key:
                logger.warning(f"Provider {provider_id} disabled: {key_env} is not set")
                continue
            args["api_key"] = api_key

        impl = pcfg.get("impl")
        if not impl:
            raise ConfigurationError(f"Provider {provider_id}: missing client impl")
        client = load(impl, **args)
        provider = load(
            pcfg.get("provider_impl") or PROVIDER_CLASSES[family],
            provider_id=provider_id,
            client=client,
            flatten_content=bool(pcfg.get("flatten_content", False)),
            max_tokens=pcfg.get("max_tokens", limits.get("max_tokens")),
        )
        bindings[provider_id] = ProviderBinding(
            provider_id=provider_id,
            family=family,
            provider=provider,
            infers_tool_completion=bool(pcfg.get("infers_tool_completion", False)),
        )
        logger.info(f"Provider ready: {provider_id} ({family}, {impl})")
    return bindings


class ServiceFactory:
    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config if config is not None else load_settings()
        self._bindings: Dict[str, ProviderBinding] | None = None
        self._models = None
        self._tools = None

    def get_bindings(self) -> Dict[str, ProviderBinding]:
        if self._bindings is None:
            self._bindings = build_provider_bindings(
                self.config.get("providers", {}) or {},
                limits=self.config.get("limits", {}) or {},
            )
        return self._bindings

    def get_models(self):
        if self._models is None:
            from relay_service.core.models import ModelRegistry

            self._models = ModelRegistry(self.config.get("models", []) or [], providers=self.get_bindings().keys())
        return self._models

    def get_tool_registry(self):
        if self._tools is None:
            # Imported here: the registry itself uses load() from this module.
            from relay_service.core.tool_registry import ToolRegistry

            tools_cfg = self.config.get("tools", {}) or {}
            self._tools = ToolRegistry(tools_cfg.get("registry", []) or [], tools_cfg.get("enabled", []) or [])
        return self._tools

    def get_chat_service(self):
        from relay_service.protocol.orchestration.orchestrator import DEFAULT_PASSTHROUGH_TOOLS
        from relay_service.protocol.prompts import Prompts
        from relay_service.protocol.service.chat_service import ChatService

        limits = self.config.get("limits", {}) or {}
        orchestration = self.config.get("orchestration", {}) or {}
        return ChatService(
            bindings=self.get_bindings(),
            models=self.get_models(),
            tools=self.get_tool_registry(),
            prompts=Prompts.from_config(self.config.get("prompts")),
            passthrough_tools=orchestration.get("passthrough_tools", DEFAULT_PASSTHROUGH_TOOLS),
            tool_timeout=limits.get("tool_timeout_sec", 30),
            stream_idle_timeout=limits.get("stream_idle_timeout_sec"),
        )
