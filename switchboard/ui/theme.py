"""Switchboard theme: palette, per-role gutter styles and the shared console."""

from dataclasses import dataclass, field

from rich.console import Console
from rich.panel import Panel
from rich.text import Text


@dataclass(frozen=True)
class ColorPalette:
    """Core UI color palette."""

    text_bright: str = "#e8e8f0"
    text: str = "#b8b8cc"
    text_dim: str = "#4a4a60"
    text_muted: str = "#363648"
    accent: str = "#00d4e5"
    accent_alt: str = "#b44dff"
    ok: str = "#34d399"
    warning: str = "#e5c747"
    error: str = "#e55a6e"


@dataclass(frozen=True)
class RoleTheme:
    """Gutter label and color for one conversation role."""

    role: str
    accent: str
    abbreviation: str


ROLE_THEMES: dict[str, RoleTheme] = {
    "user": RoleTheme("user", "#00d4e5", "you"),
    "assistant": RoleTheme("assistant", "#b44dff", "ai "),
    "tool": RoleTheme("tool", "#e5c747", "fn "),
    "system": RoleTheme("system", "#e55a6e", "sys"),
}


@dataclass(frozen=True)
class SwitchboardTheme:
    """Complete theme binding palette + role themes."""

    palette: ColorPalette = field(default_factory=ColorPalette)
    roles: dict[str, RoleTheme] = field(default_factory=lambda: dict(ROLE_THEMES))

    def get_role(self, role: str) -> RoleTheme:
        """Look up a role theme, with a neutral fallback."""
        return self.roles.get(role, RoleTheme(role, self.palette.text_dim, role[:3]))


DEFAULT_THEME = SwitchboardTheme()

CYAN = DEFAULT_THEME.palette.accent
VIOLET = DEFAULT_THEME.palette.accent_alt

console = Console()


def render_header(title: str, subtitle: str = "") -> None:
    """Render a header panel."""
    header_text = Text(title, style=f"bold {CYAN}")
    if subtitle:
        header_text.append(f"\n{subtitle}", style=f"dim {DEFAULT_THEME.palette.text_bright}")
    panel = Panel(
        header_text,
        border_style=VIOLET,
        padding=(1, 2),
        expand=False,
    )
    console.print(panel)
