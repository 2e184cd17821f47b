"""System time utilities."""

import os
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

# Weekday, month day, year, hour:minute:second and zone name
LONG_FORMAT = "%A, %B %d, %Y at %I:%M:%S %p %Z"


def current_time(tz: Optional[str] = None) -> datetime:
    """Get the current, timezone-aware time.

    Args:
        tz: Timezone string (e.g., 'Europe/Berlin'). Defaults to the
            system local zone.

    Returns:
        Current datetime object.
    """
    if tz:
        return datetime.now(ZoneInfo(tz))
    return datetime.now().astimezone()


def formatted_time(format_str: str = LONG_FORMAT, tz: Optional[str] = None) -> str:
    """Get formatted current time string.

    Args:
        format_str: strftime format string.
        tz: Timezone string.

    Returns:
        Formatted time string.
    """
    return current_time(tz).strftime(format_str)


def get_timezone() -> Optional[str]:
    """Configured timezone from SWITCHBOARD_TZ, or None for system local."""
    return os.environ.get("SWITCHBOARD_TZ") or None
