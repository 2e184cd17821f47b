"""Provider pool status as shown to the user."""

from dataclasses import dataclass
from enum import Enum

from rich.text import Text

from .theme import DEFAULT_THEME, console


class PoolStatusKind(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass(frozen=True)
class PoolStatus:
    """One pool status transition, with a summary or error message."""

    kind: PoolStatusKind
    detail: str = ""

    @classmethod
    def disconnected(cls) -> "PoolStatus":
        return cls(PoolStatusKind.DISCONNECTED)

    @classmethod
    def connecting(cls) -> "PoolStatus":
        return cls(PoolStatusKind.CONNECTING)

    @classmethod
    def connected(cls, summary: str) -> "PoolStatus":
        return cls(PoolStatusKind.CONNECTED, summary)

    @classmethod
    def error(cls, message: str) -> "PoolStatus":
        return cls(PoolStatusKind.ERROR, message)

    def label(self) -> str:
        if self.detail:
            return f"{self.kind.value}: {self.detail}"
        return self.kind.value


_KIND_COLORS = {
    PoolStatusKind.DISCONNECTED: DEFAULT_THEME.palette.text_dim,
    PoolStatusKind.CONNECTING: DEFAULT_THEME.palette.warning,
    PoolStatusKind.CONNECTED: DEFAULT_THEME.palette.ok,
    PoolStatusKind.ERROR: DEFAULT_THEME.palette.error,
}


def render_pool_status(status: PoolStatus) -> None:
    """Print a one-line MCP status indicator."""
    palette = DEFAULT_THEME.palette
    line = Text()
    line.append("mcp ", style=f"bold {_KIND_COLORS[status.kind]}")
    line.append("| ", style=f"dim {palette.text_muted}")
    line.append(status.kind.value, style=_KIND_COLORS[status.kind])
    if status.detail:
        line.append(f"  {status.detail}", style=f"dim {palette.text}")
    console.print(line)
