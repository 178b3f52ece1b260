import pytest

from relay_service.core.errors import ConfigurationError, InvalidModelError
from relay_service.core.models import ModelRegistry, descriptor_from_config


def test_descriptor_defaults():
    model = descriptor_from_config({"name": "gpt-4o", "provider": "openai"})
    assert model.label == "gpt-4o"
    assert model.supports_streaming and model.supports_tools
    assert model.system_role_name == "system"
    assert not model.inline_tools


def test_descriptor_options():
    model = descriptor_from_config(
        {"name": "o1", "label": "o1", "provider": "openai", "stream": False, "tools": False, "system_role": "user"}
    )
    assert not model.supports_streaming
    assert model.system_role_name == "user"


@pytest.mark.parametrize("entry", [
    {"name": "x"},
    {"provider": "openai"},
    {"name": "x", "provider": "openai", "system_role": "tool"},
])
def test_invalid_entries(entry):
    with pytest.raises(ConfigurationError):
        descriptor_from_config(entry)


def test_duplicate_names_are_rejected():
    with pytest.raises(ConfigurationError):
        ModelRegistry([{"name": "a", "provider": "p"}, {"name": "a", "provider": "q"}])


def test_models_of_unconfigured_providers_are_omitted():
    registry = ModelRegistry(
        [{"name": "a", "provider": "openai"}, {"name": "b", "provider": "echo"}], providers=["echo"]
    )
    assert "a" not in registry
    assert [m.name for m in registry.all()] == ["b"]


def test_unknown_model_lookup():
    registry = ModelRegistry([{"name": "a", "provider": "p"}])
    with pytest.raises(InvalidModelError) as exc:
        registry.get("b")
    assert str(exc.value) == "Invalid model name: b"


def test_duplicate_descriptors_are_rejected():
    model = descriptor_from_config({"name": "a", "provider": "p"})
    with pytest.raises(ConfigurationError, match="Duplicate model name: a"):
        ModelRegistry.from_descriptors([model, model])
