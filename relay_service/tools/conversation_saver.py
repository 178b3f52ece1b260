import asyncio
import re
from pathlib import Path

from pydantic import Field

from relay_service.core.logging import logger
from relay_service.tools.base import BaseTool, ToolParams


def file_name_for(title: str) -> str:
    return re.sub(r"[^a-z0-9]", "_", title, flags=re.IGNORECASE).lower() + ".md"


class ConversationSaverTool(BaseTool):
    """Useful for saving a summary of the conversation to a markdown file"""

    class Params(ToolParams):
        title: str = Field(..., min_length=1, description="Title of the conversation")
        markdown: str = Field(..., description="The contents of this conversation and summary, in markdown format")

    def __init__(self, directory: str = "conversations"):
        super().__init__()
        self.directory = Path(directory)

    async def run(self, params: Params) -> str:
        path = self.directory / file_name_for(params.title)
        logger.info(f"Saving conversation {params.title!r} to {path}")

        def _write():
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(params.markdown, encoding="utf-8")

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            logger.error(f"conversation_summary_saver: cannot write {path}: {e}")
            return "Error: Could not save conversation"
        return f"Conversation saved to {path.name}"
