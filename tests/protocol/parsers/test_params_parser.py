import pytest

from relay_service.core.errors import ParameterError
from relay_service.protocol.parsers.params import parse_params, repair_json
from relay_service.tools.time_tool import TimeTool


def test_repair_glued_objects_and_trailing_commas():
    assert repair_json('{"a":1}{"a":2}') == '[{"a":1},{"a":2}]'
    assert repair_json('{"a": [1, 2,], }') == '[{"a": [1, 2]}]'


def test_single_field_free_text_fallback(tool_registry):
    tool = tool_registry.get("echo_tool")
    params = parse_params(tool, "  Alan Turing  ")
    assert params.text == "Alan Turing"


def test_single_field_json_object(tool_registry):
    tool = tool_registry.get("echo_tool")
    assert parse_params(tool, '{"text": "hello"}').text == "hello"


def test_single_field_bare_number_becomes_string(tool_registry):
    # 2+2 is not JSON, 4 is; both must reach the tool as text
    tool = tool_registry.get("calculator")
    assert parse_params(tool, "2+2").expression == "2+2"
    assert parse_params(tool, "4").expression == "4"


def test_glued_objects_last_value_wins(tool_registry):
    tool = tool_registry.get("echo_tool")
    params = parse_params(tool, '{"text":"first"}{"text":"second"}')
    assert params.text == "second"


def test_multi_field_first_object(tool_registry):
    tool = tool_registry.get("pair_tool")
    params = parse_params(tool, '{"a": 1, "b": "x",}')
    assert (params.a, params.b) == (1, "x")


@pytest.mark.parametrize("raw", ["", "   ", None])
def test_empty_parameters(tool_registry, raw):
    with pytest.raises(ParameterError) as exc:
        parse_params(tool_registry.get("echo_tool"), raw)
    assert exc.value.message == "empty parameters"


def test_multi_field_requires_json(tool_registry):
    with pytest.raises(ParameterError) as exc:
        parse_params(tool_registry.get("pair_tool"), "a is one")
    assert exc.value.message.startswith("invalid JSON parameters")


def test_validation_error_names_every_field(tool_registry):
    with pytest.raises(ParameterError) as exc:
        parse_params(tool_registry.get("pair_tool"), '{"a": "not a number"}')
    assert set(exc.value.fields) == {"a", "b"}
    assert exc.value.message.startswith("invalid parameters:")
    assert "invalid JSON" not in exc.value.message


@pytest.mark.parametrize("raw", ["{}", "[]", "[{}]"])
def test_single_field_without_arguments_uses_the_default(raw):
    tool = TimeTool()
    assert parse_params(tool, raw).location == "UTC"


def test_single_field_without_arguments_still_requires_the_field(tool_registry):
    with pytest.raises(ParameterError) as exc:
        parse_params(tool_registry.get("echo_tool"), "{}")
    assert exc.value.fields == ["text"]
