import pytest

from relay_service.tools.conversation_saver import ConversationSaverTool, file_name_for


def test_file_name_for():
    assert file_name_for("My Chat: Notes!") == "my_chat__notes_.md"


@pytest.mark.asyncio
async def test_saves_markdown(tmp_path):
    tool = ConversationSaverTool(directory=str(tmp_path / "conversations"))
    out = await tool.run(tool.Params(title="Trip Plan", markdown="# Trip\n\n- day 1"))
    assert out == "Conversation saved to trip_plan.md"
    assert (tmp_path / "conversations" / "trip_plan.md").read_text(encoding="utf-8") == "# Trip\n\n- day 1"
