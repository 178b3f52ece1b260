from relay_service.protocol.prompts import GENERAL_PROMPT, SUMMARIZER_PROMPT, Prompts, render_tool_catalog


def test_catalog_lists_tools_and_parameters(tool_registry):
    catalog = render_tool_catalog({"pair_tool": tool_registry.get("pair_tool")})
    assert catalog.splitlines() == [
        "• pair_tool: Two required fields.",
        "  - a (integer, required)",
        "  - b (string, required)",
    ]


def test_instruction_without_tools_is_the_general_prompt():
    assert Prompts().instruction({}) == GENERAL_PROMPT


def test_inline_instruction_teaches_the_marker(tool_registry):
    text = Prompts().instruction(tool_registry.all(), inline=True)
    assert "<tool>wikipedia</tool>Alan Turing" in text
    assert "• calculator:" in text


def test_structured_instruction_has_no_catalog(tool_registry):
    text = Prompts().instruction(tool_registry.all())
    assert "• calculator:" not in text


def test_overrides_from_config():
    prompts = Prompts.from_config({"summarizer": "  Be short.  "})
    assert prompts.summarizer == "Be short."
    assert prompts.general == GENERAL_PROMPT
    assert Prompts.from_config(None).summarizer == SUMMARIZER_PROMPT
