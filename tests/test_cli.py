"""Tests for the application wiring and click commands."""

import importlib
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from switchboard.cli import SwitchboardApp, cli
from switchboard.config import ServerConfig
from switchboard.errors import AllProvidersUnreachable
from switchboard.remote.connection import RemoteTool
from switchboard.remote.pool import ProviderPool
from switchboard.ui import PoolStatus, PoolStatusKind

# The package re-exports the click group as `switchboard.cli`, so reach the
# module itself through the import system
cli_module = importlib.import_module("switchboard.cli")


def _write_config(tmp_path, servers=None, **defaults):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump({
        "providers": {
            "openai": {"enabled": True, "api_key": "sk-test", "model": "gpt-4o-mini"},
        },
        "defaults": {"provider": "openai", **defaults},
        "tools": {"clock": True},
        "servers": servers or {},
    }))
    return str(path)


class FakeConnection:
    def __init__(self, provider_id, tools):
        self.provider_id = provider_id
        self.tools = tools
        self.is_open = True

    async def list_tools(self):
        return self.tools

    async def call_tool(self, name, arguments):
        return "ok"

    async def close(self):
        self.is_open = False


def _fake_pool(failing=()):
    async def connector(provider_id, config, timeout):
        if provider_id in failing:
            raise ConnectionError("refused")
        return FakeConnection(provider_id, [RemoteTool("search")])

    return ProviderPool(connector=connector)


@pytest.fixture(autouse=True)
def reset_app():
    cli_module._app = None
    yield
    cli_module._app = None


class TestSwitchboardApp:
    def test_init(self, tmp_path):
        app = SwitchboardApp(_write_config(tmp_path, max_rounds=4))
        assert "openai" in app.providers
        assert app.local_tools.has_tool("get_current_date")
        assert app.status == PoolStatus.disconnected()

        engine = app.create_engine()
        assert engine.max_rounds == 4
        assert engine.pool is app.pool

    def test_unknown_provider(self, tmp_path):
        import click

        app = SwitchboardApp(_write_config(tmp_path))
        with pytest.raises(click.ClickException, match="not found or not enabled"):
            app.get_provider("nope")

    @pytest.mark.asyncio
    async def test_connect_reports_status(self, tmp_path):
        app = SwitchboardApp(_write_config(tmp_path))
        app.pool = _fake_pool()
        statuses = []

        warnings = await app.connect(
            {"docs": ServerConfig("http", "http://docs/sse")}, on_status=statuses.append,
        )

        assert warnings == []
        assert statuses == [
            PoolStatus.connecting(),
            PoolStatus.connected("1 tools from 1 server(s)"),
        ]
        await app.disconnect(on_status=statuses.append)
        assert statuses[-1] == PoolStatus.disconnected()
        await app.aclose()

    @pytest.mark.asyncio
    async def test_connect_failure_reports_error(self, tmp_path):
        app = SwitchboardApp(_write_config(tmp_path))
        app.pool = _fake_pool(failing={"docs"})
        statuses = []

        with pytest.raises(AllProvidersUnreachable):
            await app.connect(
                {"docs": ServerConfig("http", "http://docs/sse")}, on_status=statuses.append,
            )

        assert statuses[-1].kind is PoolStatusKind.ERROR
        assert "docs: refused" in statuses[-1].detail
        assert app.status is statuses[-1]
        await app.aclose()

    @pytest.mark.asyncio
    async def test_connect_uses_configured_servers(self, tmp_path):
        servers = {"docs": {"type": "http", "url": "http://docs/sse"}}
        app = SwitchboardApp(_write_config(tmp_path, servers=servers))
        app.pool = _fake_pool()

        await app.connect()

        assert app.pool.connected_provider_ids() == ["docs"]
        await app.aclose()
        assert app.pool.is_empty()


class TestCommands:
    def test_config_command(self, tmp_path):
        servers = {"docs": {"type": "http", "url": "http://docs/sse"}}
        path = _write_config(tmp_path, servers=servers)

        result = CliRunner().invoke(cli, ["--config", path, "config"])

        assert result.exit_code == 0
        assert "MCP servers:" in result.output
        assert "docs" in result.output
        assert "http://docs/sse" in result.output

    def test_help_lists_commands(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("chat", "ask", "tools", "config"):
            assert name in result.output

    def test_ask_without_servers(self, tmp_path):
        from switchboard.providers.response import ModelReply

        path = _write_config(tmp_path)

        async def fake_complete(turns, tools):
            return ModelReply(content="The answer")

        app = SwitchboardApp(path)
        cli_module._app = app
        with patch.object(app.providers["openai"], "complete", side_effect=fake_complete) as complete:
            result = CliRunner().invoke(cli, ["--config", path, "ask", "what", "now"])

        assert result.exit_code == 0
        complete.assert_called_once()
        assert complete.call_args.args[0][-1].content == "what now"
        assert "The answer" in result.output

    def test_ask_exits_nonzero_on_model_failure(self, tmp_path):
        from switchboard.errors import ModelCallFailed

        path = _write_config(tmp_path)

        async def failing_complete(turns, tools):
            raise ModelCallFailed("401 from chat API: bad key")

        app = SwitchboardApp(path)
        cli_module._app = app
        with patch.object(app.providers["openai"], "complete", side_effect=failing_complete) as complete:
            result = CliRunner().invoke(cli, ["--config", path, "ask", "hello"])

        assert result.exit_code == 1
        complete.assert_called_once()
        assert "bad key" in result.output
