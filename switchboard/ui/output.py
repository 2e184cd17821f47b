"""Output rendering for conversation turns, tool catalogs and errors."""

from typing import Iterable

from rich.markdown import Markdown
from rich.table import Table
from rich.text import Text

from ..conversation.turns import AssistantTurn, ConversationTurn, ToolTurn
from ..tools.schema import ToolDescriptor
from .theme import DEFAULT_THEME, console

# Tool results longer than this are cut in the transcript view
MAX_TOOL_PREVIEW = 400


def _gutter(role: str, suffix: str = "") -> Text:
    theme = DEFAULT_THEME.get_role(role)
    line = Text()
    line.append(f"{theme.abbreviation} ", style=f"bold {theme.accent}")
    line.append("| ", style=f"dim {DEFAULT_THEME.palette.text_muted}")
    if suffix:
        line.append(suffix, style=f"dim {DEFAULT_THEME.palette.text_dim}")
    return line


def render_turn(turn: ConversationTurn) -> None:
    """Render a single turn. Turns with no content are skipped."""
    palette = DEFAULT_THEME.palette

    if isinstance(turn, ToolTurn):
        line = _gutter("tool", f"[{turn.tool_call_id}] ")
        content = turn.content
        if len(content) > MAX_TOOL_PREVIEW:
            content = content[:MAX_TOOL_PREVIEW] + "..."
        line.append(content, style=palette.text)
        console.print(line)
        return

    if not turn.content:
        return

    if isinstance(turn, AssistantTurn):
        console.print(_gutter("assistant"))
        console.print(Markdown(turn.content))
        return

    style = palette.error if turn.role == "system" else palette.text_bright
    line = _gutter(turn.role)
    line.append(turn.content, style=style)
    console.print(line)


def render_history(turns: Iterable[ConversationTurn]) -> None:
    """Render a whole conversation in order."""
    for turn in turns:
        render_turn(turn)


def render_tool_table(tools: Iterable[ToolDescriptor], title: str = "Tools") -> None:
    """Render the merged tool catalog as a table."""
    palette = DEFAULT_THEME.palette
    table = Table(title=title, title_style=f"bold {palette.accent}", border_style=palette.text_muted)
    table.add_column("NAME", style=palette.text_bright, no_wrap=True)
    table.add_column("DESCRIPTION", style=palette.text)

    count = 0
    for tool in tools:
        # Names and descriptions come from remote servers; never parse them as markup
        table.add_row(Text(tool.name), Text(tool.description))
        count += 1

    if not count:
        table.add_row("(none)", "no tools available")
    console.print(table)


def render_error(text: str) -> None:
    """Render an error message."""
    palette = DEFAULT_THEME.palette
    err = Text()
    err.append("err ", style=f"bold {palette.error}")
    err.append("| ", style=f"dim {palette.text_muted}")
    err.append(text, style=palette.error)
    console.print(err)


def render_warning(text: str) -> None:
    palette = DEFAULT_THEME.palette
    line = Text()
    line.append("wrn ", style=f"bold {palette.warning}")
    line.append("| ", style=f"dim {palette.text_muted}")
    line.append(text, style=palette.warning)
    console.print(line)
