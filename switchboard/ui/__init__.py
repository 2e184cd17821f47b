"""Terminal UI components."""

from .theme import DEFAULT_THEME, console, render_header
from .output import (
    render_error,
    render_history,
    render_tool_table,
    render_turn,
    render_warning,
)
from .status import PoolStatus, PoolStatusKind, render_pool_status

__all__ = [
    "DEFAULT_THEME",
    "console",
    "render_header",
    "render_error",
    "render_history",
    "render_tool_table",
    "render_turn",
    "render_warning",
    "PoolStatus",
    "PoolStatusKind",
    "render_pool_status",
]
