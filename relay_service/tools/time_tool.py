import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError, available_timezones

from pydantic import Field

from relay_service.core.logging import logger
from relay_service.tools.base import BaseTool, ToolParams

# Normalize common timezone names
TIMEZONE_ALIASES = {
    "eastern": "America/New_York",
    "central": "America/Chicago",
    "mountain": "America/Denver",
    "pacific": "America/Los_Angeles",
    "est": "America/New_York",
    "cst": "America/Chicago",
    "mst": "America/Denver",
    "pst": "America/Los_Angeles",
    "uk": "Europe/London",
    "london": "Europe/London",
    "england": "Europe/London",
    "britain": "Europe/London",
    "utc": "UTC",
    "gmt": "UTC",
}


def resolve_timezone(location: str) -> str:
    """Map a timezone name, alias or bare city ("Tokyo", "new york") to an IANA zone."""
    key = location.strip()
    alias = TIMEZONE_ALIASES.get(key.lower())
    if alias:
        return alias
    if "/" in key:
        return key
    city = key.replace(" ", "_").lower()
    for zone in sorted(available_timezones()):
        if zone.rsplit("/", 1)[-1].lower() == city:
            return zone
    return key


class TimeTool(BaseTool):
    """Useful for getting current time and timezone information for a location"""

    class Params(ToolParams):
        location: str = Field(
            "UTC", description="IANA timezone (e.g. Europe/Dublin) or city name. Defaults to UTC."
        )

    marker_field = "location"

    def __init__(self, clock=None):
        super().__init__()
        # Injected for tests; returns an aware datetime for a tzinfo
        self._clock = clock or datetime.datetime.now

    async def run(self, params: Params) -> str:
        timezone = resolve_timezone(params.location)
        try:
            now = self._clock(ZoneInfo(timezone))
        except (ZoneInfoNotFoundError, ValueError) as e:
            logger.warning(f"timezone: unknown timezone {params.location!r}")
            raise ValueError(f"Unknown timezone: {params.location}") from e

        time_str = now.strftime("%I:%M:%S %p")
        date_str = now.strftime("%A, %B %d, %Y")
        zone_str = now.strftime("%Z")
        readable_tz = timezone.replace("_", " ").replace("/", ", ")
        return f"Current time in {params.location}: {time_str} on {date_str} ({zone_str} - {readable_tz})"
