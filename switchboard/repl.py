"""Interactive chat REPL: the terminal front end for a ConversationEngine."""

from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter

from .cli import SwitchboardApp
from .config import ServerConfig, load_server_file
from .conversation import ConversationTurn
from .errors import SwitchboardError
from .ui import (
    PoolStatus,
    console,
    render_error,
    render_header,
    render_history,
    render_pool_status,
    render_tool_table,
    render_turn,
    render_warning,
)
from .ui.theme import CYAN, VIOLET
from .utils.time import formatted_time, get_timezone

COMMANDS = ["/connect", "/disconnect", "/tools", "/history", "/reset", "/help", "/exit", "/quit"]


class ChatREPL:
    """Interactive REPL interface for Switchboard.

    Reads user messages, hands them to the engine one exchange at a time,
    and renders turns and MCP pool status as they change.
    """

    def __init__(self, app: SwitchboardApp, provider: Optional[str] = None):
        self.app = app
        self.provider_name = provider or app.config.get_default_provider()
        self.engine = app.create_engine(self.provider_name)
        self._prompt_session: Optional[PromptSession] = None

    # ------------------------------------------------------------------
    # Adapter surface
    # ------------------------------------------------------------------

    async def get_user_message(self) -> str:
        if self._prompt_session is None:
            self._prompt_session = PromptSession(
                completer=WordCompleter(COMMANDS, sentence=True),
            )
        return await self._prompt_session.prompt_async(f"[{self.provider_name}] > ")

    def get_provider_config(self, path: str = "") -> dict[str, ServerConfig]:
        """Server configs from ``path`` if given, else from the config file."""
        if path:
            return load_server_file(path)
        return self.app.config.get_server_configs()

    def render_turn(self, turn: ConversationTurn) -> None:
        render_turn(turn)

    def set_pool_status(self, status: PoolStatus) -> None:
        render_pool_status(status)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def welcome(self) -> None:
        """Show welcome message."""
        render_header("SWITCHBOARD", f"Model: {self.engine.provider.config.model}")
        console.print(f"Time: {formatted_time(tz=get_timezone())}", style="dim")
        console.print(f"Local tools: {', '.join(self.app.local_tools.tool_names) or '(none)'}", style="dim")
        console.print("Type /help for commands.\n", style="dim")

    def show_help(self) -> None:
        console.print("\nCommands:", style=f"bold {CYAN}")
        console.print("  /connect [file]  - Connect MCP servers (from config or a YAML/JSON file)")
        console.print("  /disconnect      - Disconnect all MCP servers")
        console.print("  /tools           - List every tool the model can call")
        console.print("  /history         - Show the full conversation")
        console.print("  /reset           - Start a new conversation")
        console.print("  /help            - Show this help")
        console.print("  /exit, /quit     - Exit SWITCHBOARD")
        console.print("\nOtherwise, just type your message!\n", style="dim")

    async def connect(self, path: str = "") -> None:
        try:
            configs = self.get_provider_config(path)
        except SwitchboardError as e:
            self.set_pool_status(PoolStatus.error(str(e)))
            return
        try:
            warnings = await self.app.connect(configs, on_status=self.set_pool_status)
        except SwitchboardError:
            # app.connect has already reported the error status
            return
        for warning in warnings:
            render_warning(warning)

    async def disconnect(self) -> None:
        await self.app.disconnect(on_status=self.set_pool_status)

    def show_tools(self) -> None:
        tools, _routes = self.engine.catalog()
        render_tool_table(tools)

    async def handle_command(self, line: str) -> bool:
        """Handle slash commands. Returns True to continue, False to exit."""
        if not line.startswith("/"):
            return True

        parts = line.strip().split(None, 1)
        cmd = parts[0].lstrip("/").lower()
        arg = parts[1].strip() if len(parts) > 1 else ""

        if cmd in ("exit", "quit"):
            console.print("Goodbye!", style=f"dim {VIOLET}")
            return False

        elif cmd == "connect":
            await self.connect(arg)

        elif cmd == "disconnect":
            await self.disconnect()

        elif cmd == "tools":
            self.show_tools()

        elif cmd == "history":
            render_history(self.engine.history)

        elif cmd == "reset":
            self.engine.reset()
            console.print("Conversation cleared.", style=f"dim {CYAN}")

        elif cmd == "help":
            self.show_help()

        else:
            console.print(f"Unknown command: /{cmd}", style="dim red")

        return True

    async def send(self, text: str) -> None:
        """Run one exchange and render every turn it added after the user's."""
        start = len(self.engine.history) + 1
        result = await self.engine.send_message(text)
        for turn in self.engine.history[start:]:
            self.render_turn(turn)
        if result.rounds:
            console.print(f"({result.rounds} tool round(s))", style="dim")

    async def run(self, connect: bool = True) -> None:
        """Start the REPL loop."""
        self.welcome()
        try:
            if connect and self.app.config.get_server_configs():
                await self.connect()
            else:
                self.set_pool_status(self.app.status)
        except SwitchboardError as e:
            render_error(str(e))

        try:
            while True:
                try:
                    line = (await self.get_user_message()).strip()
                except KeyboardInterrupt:
                    continue

                if not line:
                    continue

                if line.startswith("/"):
                    if not await self.handle_command(line):
                        break
                    continue

                await self.send(line)
        except EOFError:
            console.print("Goodbye!", style=f"dim {VIOLET}")
        finally:
            await self.app.aclose()
