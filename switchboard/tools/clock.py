"""Clock tool: lets the model ask for the current date and time."""

from typing import Any

from ..plugins.base import BasePlugin
from ..plugins.registry import register_plugin
from ..utils.time import formatted_time, get_timezone


@register_plugin("clock")
class ClockPlugin(BasePlugin):
    """Current date and time."""

    @property
    def name(self) -> str:
        return "clock"

    @property
    def description(self) -> str:
        return "Returns the current date and time"

    def get_tools(self) -> dict[str, Any]:
        return {"get_current_date": get_current_date}


def get_current_date() -> str:
    """Returns the current date and time"""
    return formatted_time(tz=get_timezone())
