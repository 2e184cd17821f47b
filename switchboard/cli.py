"""Switchboard CLI - chat with a model that can call local and MCP tools."""

import asyncio
import logging
import sys
from typing import Callable, Mapping, Optional

import click
from rich.logging import RichHandler

from .config import ConfigManager, ServerConfig
from .conversation import ConversationEngine, ConversationTurn
from .errors import SwitchboardError
from .providers.base import BaseProvider
from .providers.registry import discover_providers, get_registry
from .remote import ProviderPool
from .tools import build_tool_registry
from .ui import (
    PoolStatus,
    console,
    render_error,
    render_pool_status,
    render_tool_table,
    render_turn,
    render_warning,
)
from .ui.theme import CYAN

_log = logging.getLogger(__name__)

StatusSink = Callable[[PoolStatus], None]


class SwitchboardApp:
    """Main Switchboard application: config, chat providers, tools and pool."""

    def __init__(self, config_path: Optional[str] = None):
        self.config = ConfigManager(config_path)
        self.settings = self.config.get_settings()
        self.providers: dict[str, BaseProvider] = {}
        self._init_providers()
        self.local_tools = build_tool_registry(self.config.get_tools_config())
        self.pool = ProviderPool(connect_timeout=float(self.settings["connect_timeout"]))
        self.status = PoolStatus.disconnected()

    def _init_providers(self) -> None:
        """Initialize enabled chat providers from the registry."""
        discover_providers()
        for provider_name, provider_class in get_registry().items():
            config = self.config.get_provider_config(provider_name)
            if config:
                try:
                    self.providers[provider_name] = provider_class(config)
                except Exception as e:
                    _log.error("Failed to initialize %s: %s", provider_name, e)

    def get_provider(self, name: Optional[str] = None) -> BaseProvider:
        """Get a provider by name or default."""
        provider_name = name or self.config.get_default_provider()

        if provider_name not in self.providers:
            raise click.ClickException(
                f"Provider '{provider_name}' not found or not enabled. "
                f"Available: {list(self.providers.keys())}"
            )

        return self.providers[provider_name]

    def create_engine(
        self,
        provider: Optional[str] = None,
        on_turn: Optional[Callable[[ConversationTurn], None]] = None,
    ) -> ConversationEngine:
        """Build a conversation engine wired to this app's tools and pool."""
        settings = self.settings
        return ConversationEngine(
            self.get_provider(provider),
            self.local_tools,
            self.pool,
            max_rounds=settings["max_rounds"],
            tool_timeout=float(settings["tool_timeout"]),
            model_timeout=float(settings["model_timeout"]),
            system_prompt=settings["system_prompt"] or None,
            on_turn=on_turn,
        )

    def _set_status(self, status: PoolStatus, sink: Optional[StatusSink]) -> None:
        self.status = status
        if sink is not None:
            sink(status)

    async def connect(
        self,
        configs: Optional[Mapping[str, ServerConfig]] = None,
        on_status: Optional[StatusSink] = None,
    ) -> list[str]:
        """Attach the pool to the given (or configured) servers.

        Returns the per-server warnings from a partial connect. Errors are
        reported as an ``error`` status and re-raised.
        """
        self._set_status(PoolStatus.connecting(), on_status)
        try:
            if configs is None:
                configs = self.config.get_server_configs()
            warnings = await self.pool.attach(configs)
        except SwitchboardError as e:
            self._set_status(PoolStatus.error(str(e)), on_status)
            raise
        self._set_status(PoolStatus.connected(self.pool.summary()), on_status)
        return warnings

    async def disconnect(self, on_status: Optional[StatusSink] = None) -> None:
        await self.pool.detach()
        self._set_status(PoolStatus.disconnected(), on_status)

    async def aclose(self) -> None:
        """Close MCP sessions and HTTP clients."""
        await self.pool.detach()
        for provider in self.providers.values():
            await provider.aclose()


# Global app instance
_app = None


def get_app(config_path: Optional[str] = None) -> SwitchboardApp:
    """Get or create the app instance."""
    global _app
    if _app is None:
        _app = SwitchboardApp(config_path)
    return _app


def configure_logging(verbose: bool = False) -> None:
    """Route library logging through rich on the shared console."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=verbose)],
        force=True,
    )


# CLI Commands
@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, config_path, verbose):
    """SWITCHBOARD - chat with one model across local and MCP tools."""
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.option("--provider", "-p", help="Chat provider to use (openai, openrouter)")
@click.option("--no-connect", is_flag=True, help="Start without connecting MCP servers")
@click.pass_context
def chat(ctx, provider, no_connect):
    """Start interactive chat mode."""
    from .repl import ChatREPL

    app = get_app(ctx.obj["config_path"])
    repl = ChatREPL(app, provider=provider)
    try:
        asyncio.run(repl.run(connect=not no_connect))
    except KeyboardInterrupt:
        console.print("\nInterrupted.", style="dim red")


@cli.command()
@click.argument("prompt", nargs=-1, required=True)
@click.option("--provider", "-p", help="Chat provider to use (openai, openrouter)")
@click.option("--no-connect", is_flag=True, help="Skip connecting MCP servers")
@click.pass_context
def ask(ctx, prompt, provider, no_connect):
    """Run a single exchange and print the answer."""
    app = get_app(ctx.obj["config_path"])
    prompt_text = " ".join(prompt)
    try:
        result = asyncio.run(_ask(app, prompt_text, provider, not no_connect))
    except SwitchboardError as e:
        raise click.ClickException(str(e))
    if not result.ok:
        sys.exit(1)


async def _ask(app: SwitchboardApp, prompt: str, provider: Optional[str], connect: bool):
    engine = app.create_engine(provider)
    try:
        if connect and app.config.get_server_configs():
            for warning in await app.connect(on_status=render_pool_status):
                render_warning(warning)
        result = await engine.send_message(prompt)
        render_turn(engine.history[-1])
        return result
    finally:
        await app.aclose()


@cli.command()
@click.pass_context
def tools(ctx):
    """Connect configured MCP servers and list every tool the model would see."""
    app = get_app(ctx.obj["config_path"])
    try:
        asyncio.run(_tools(app))
    except SwitchboardError as e:
        raise click.ClickException(str(e))


async def _tools(app: SwitchboardApp) -> None:
    try:
        render_tool_table(app.local_tools.list_descriptors(), title="Local tools")
        if app.config.get_server_configs():
            for warning in await app.connect(on_status=render_pool_status):
                render_warning(warning)
            render_tool_table(app.pool.list_descriptors(), title="MCP tools")
    finally:
        await app.aclose()


@cli.command()
@click.pass_context
def config(ctx):
    """Show configuration."""
    app = get_app(ctx.obj["config_path"])

    console.print(f"Config file: {app.config.config_path}")
    console.print(f"Enabled providers: {app.config.get_enabled_providers()}")
    console.print(f"Default provider: {app.config.get_default_provider()}")
    try:
        servers = app.config.get_server_configs()
    except SwitchboardError as e:
        render_error(str(e))
        return
    console.print("MCP servers:", style=f"bold {CYAN}")
    if not servers:
        console.print("  (none)", style="dim")
    for server_id, server in servers.items():
        console.print(f"  {server_id}  {server.type}  {server.url}", style="dim")


if __name__ == "__main__":
    cli()
