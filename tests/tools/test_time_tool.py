import datetime

import pytest

from relay_service.tools.time_tool import TimeTool, resolve_timezone


def fixed_clock(tz):
    return datetime.datetime(2024, 3, 1, 15, 4, 5, tzinfo=datetime.timezone.utc).astimezone(tz)


@pytest.mark.parametrize("location, zone", [
    ("pst", "America/Los_Angeles"),
    ("London", "Europe/London"),
    ("Tokyo", "Asia/Tokyo"),
    ("new york", "America/New_York"),
    ("Europe/Dublin", "Europe/Dublin"),
])
def test_resolve_timezone(location, zone):
    assert resolve_timezone(location) == zone


@pytest.mark.asyncio
async def test_current_time():
    tool = TimeTool(clock=fixed_clock)
    out = await tool.run(tool.Params(location="Tokyo"))
    assert out == "Current time in Tokyo: 12:04:05 AM on Saturday, March 02, 2024 (JST - Asia, Tokyo)"


@pytest.mark.asyncio
async def test_defaults_to_utc():
    tool = TimeTool(clock=fixed_clock)
    out = await tool.run(tool.Params())
    assert out.startswith("Current time in UTC: 03:04:05 PM")


@pytest.mark.asyncio
async def test_unknown_timezone():
    tool = TimeTool(clock=fixed_clock)
    with pytest.raises(ValueError, match="Unknown timezone: Atlantis"):
        await tool.run(tool.Params(location="Atlantis"))
