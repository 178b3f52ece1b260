# relay_service/protocol/prompts.py
"""
Instruction prompts sent as the first message of each stream.

- General prompt: every first stream.
- Inline tool prompt: appended for models that call tools by writing
  `<tool>NAME</tool>PARAMS` in their text; lists the tool catalog.
- Summarizer prompt: the second stream, which turns a tool's output into prose.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from relay_service.protocol.parsers.markers import format_marker

GENERAL_PROMPT = """
You are a helpful, friendly AI assistant that can retrieve and summarize information from various sources.

When formatting your response, please follow these guidelines:
- Format the response appropriately (e.g., bullet points, sections, diagrams)
- When presenting relationships, processes, or hierarchical information, create Mermaid diagrams
- Use Mermaid syntax for:
  * Flowcharts for processes
  * Sequence diagrams for interactions
  * Class diagrams for hierarchies
  * Gantt charts for timelines
""".strip()

TOOL_GUIDELINES = """
When using tools that require JSON parameters:
1. Always provide valid, well-formatted JSON
2. Never concatenate multiple JSON objects without proper comma separation
3. Ensure all JSON strings are properly escaped
4. Always include the required parameters as specified in the tool's schema

When using the `chart_generator` tool, the response is a Mermaid diagram that is shown directly.
Do not summarize or modify the chart output.

When using the `conversation_summary_saver` tool, provide it the entire conversation: a concise
summary followed by a detailed transcript.

When using the `web_browser` tool, always provide full and valid URLs including the protocol
(e.g. `https://cnet.com`, not `cnet`).

When using the `moby` tool, ask the question directly; never include "ask moby" in it.

Present tool results as part of your own knowledge, without mentioning the source or the tool.
""".strip()

SUMMARIZER_PROMPT = """
You are a helpful, friendly AI assistant that is an excellent writer and summarizer.

Please provide a clear and concise summary of the information provided.
If you are not sure what to summarize, ask the user for clarification.
If the information contains any HTML elements like buttons, links, or other UI elements, ignore them. For instance, if it is a web page, ignore the page's header, footer, navigation, etc. and focus only on the content of the body of the page.
Don't reference "the text", "the page", "the information", etc. in your response.
Avoid overall summaries, focus on factual information you've retrieved.

You will be provided with a tool's output.

After receiving the tool's output, and unless otherwise specified:
  - Analyze and summarize the key information
  - Present findings in a clear, organized manner
  - Highlight the most relevant points
  - Remove redundant or irrelevant information
  - Provide context when necessary
""".strip()


def render_tool_catalog(tools: Dict[str, Any]) -> str:
    """
    Render a readable list of tools from the tools registry.

    Format:
      • tool_name: Short description
        - param (type, required/optional): description
    """
    if not tools:
        return ""

    lines: List[str] = []
    for tool_name, tool_obj in tools.items():
        fn = tool_obj.schema.get("function") or {}
        name = fn.get("name", tool_name)
        desc = (fn.get("description") or "No description provided.").splitlines()[0]
        params = fn.get("parameters") or {}
        props = params.get("properties") or {}
        required = set(params.get("required") or [])

        lines.append(f"• {name}: {desc}")
        for pname in sorted(props.keys()):
            pinfo = props.get(pname) or {}
            ptype = pinfo.get("type", "string")
            pdesc = (pinfo.get("description") or "").strip()
            req = "required" if pname in required else "optional"
            if pdesc:
                lines.append(f"  - {pname} ({ptype}, {req}): {pdesc}")
            else:
                lines.append(f"  - {pname} ({ptype}, {req})")

    return "\n".join(lines)


def inline_tool_prompt(tools: Dict[str, Any]) -> str:
    catalog = render_tool_catalog(tools)
    single = format_marker("wikipedia", "Alan Turing")
    multi = format_marker("translator", '{"text": "good morning", "target_language": "fr"}')
    return f"""
You have access to the following tools:

{catalog}

To call a tool, write the tool name between <tool> and </tool>, immediately followed by its parameters:
{single}
Tools with several parameters take a JSON object:
{multi}

Call at most one tool per reply and write nothing after the tool call.
Only use tools when they are necessary to answer the user's question.
""".strip()


@dataclass(frozen=True)
class Prompts:
    general: str = GENERAL_PROMPT
    guidelines: str = TOOL_GUIDELINES
    summarizer: str = SUMMARIZER_PROMPT

    @classmethod
    def from_config(cls, cfg: Optional[Dict[str, Any]]) -> "Prompts":
        cfg = cfg or {}
        return cls(
            general=(cfg.get("general") or GENERAL_PROMPT).strip(),
            guidelines=(cfg.get("guidelines") or TOOL_GUIDELINES).strip(),
            summarizer=(cfg.get("summarizer") or SUMMARIZER_PROMPT).strip(),
        )

    def instruction(self, tools: Dict[str, Any], inline: bool = False) -> str:
        """First-stream instruction for a model; `tools` is empty when the model gets none."""
        if not tools:
            return self.general
        parts = [self.general, self.guidelines]
        if inline:
            parts.append(inline_tool_prompt(tools))
        return "\n\n".join(parts)
