"""Every enabled tool's provider-facing schema accepts what its params model accepts."""
import jsonschema
import pytest

from relay_service.core.config import load_settings
from relay_service.core.tool_registry import ToolRegistry

SAMPLES = {
    "calculator": {"expression": "2+2"},
    "web_browser": {"url": "https://example.com"},
    "wikipedia": {"query": "Alan Turing"},
    "web_search": {"query": "relay", "count": 3, "freshness": "pw"},
    "urban_dictionary": {"term": "yeet"},
    "github_review": {"url": "https://github.com/o/r/pull/1"},
    "chart_generator": {"type": "pie", "data": [["a", 1], ["b", 2]], "title": "T"},
    "image_generator": {"prompt": "a red fox"},
    "moby": {"question": "What were sales last week?", "shopId": "example.myshopify.com"},
    "conversation_summary_saver": {"title": "Notes", "markdown": "# Notes"},
    "timezone": {"location": "Tokyo"},
    "translator": {"text": "hello", "targetLanguage": "fr"},
}


@pytest.fixture(scope="module")
def registry():
    tools_cfg = load_settings()["tools"]
    return ToolRegistry(tools_cfg["registry"], tools_cfg["enabled"])


def test_every_enabled_tool_has_a_sample(registry):
    assert set(registry.all()) == set(SAMPLES)


@pytest.mark.parametrize("name", sorted(SAMPLES))
def test_schema_round_trip(registry, name):
    tool = registry.get(name)
    schema = tool.schema["function"]["parameters"]
    jsonschema.validate(SAMPLES[name], schema)
    params = tool.params_model.model_validate(SAMPLES[name])
    # what the executor sees validates again
    tool.params_model.model_validate(params.model_dump())


@pytest.mark.parametrize("name", sorted(SAMPLES))
def test_schema_rejects_missing_required(registry, name):
    tool = registry.get(name)
    schema = tool.schema["function"]["parameters"]
    if not schema.get("required"):
        pytest.skip("no required parameters")
    with pytest.raises(jsonschema.ValidationError):
        jsonschema.validate({}, schema)
