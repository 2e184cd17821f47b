"""Tests for ProviderPool: attach, catalog, dispatch and detach."""

import asyncio

import pytest

from switchboard.config import ServerConfig, parse_server_configs
from switchboard.errors import (
    AllProvidersUnreachable,
    NoProvidersConfigured,
    ProviderNotConnected,
    ToolExecutionFailed,
    UnknownQualifiedTool,
)
from switchboard.remote.connection import RemoteTool
from switchboard.remote.pool import ProviderPool, ToolRef


class FakeConnection:
    """Stands in for a live ProviderConnection."""

    def __init__(self, provider_id, tools=(), fail_list=False, fail_close=False, list_delay=0):
        self.provider_id = provider_id
        self.tools = list(tools)
        self.fail_list = fail_list
        self.list_delay = list_delay
        self.fail_close = fail_close
        self.is_open = True
        self.calls = []

    async def list_tools(self):
        await asyncio.sleep(self.list_delay)
        if self.fail_list:
            raise RuntimeError("catalog unavailable")
        return self.tools

    async def call_tool(self, name, arguments):
        self.calls.append((name, arguments))
        if name == "explode":
            raise RuntimeError("provider blew up")
        return f"{self.provider_id}:{name}:{arguments}"

    async def close(self):
        self.is_open = False
        if self.fail_close:
            raise RuntimeError("close failed")


def _make_connector(connections, failing=()):
    """Connector that hands out prepared fakes, or raises for ``failing`` ids."""
    dialed = []

    async def connector(provider_id, config, timeout):
        dialed.append(provider_id)
        if provider_id in failing:
            raise ConnectionError(f"refused by {config.url}")
        return connections[provider_id]

    connector.dialed = dialed
    return connector


def _configs(*ids, server_type="http"):
    return {pid: ServerConfig(server_type, f"http://{pid}/sse") for pid in ids}


class TestAttach:
    @pytest.mark.asyncio
    async def test_all_connect(self):
        conns = {
            "a": FakeConnection("a", [RemoteTool("search", "Search docs")]),
            "b": FakeConnection("b", [RemoteTool("fetch", "Fetch a page")]),
        }
        pool = ProviderPool(connector=_make_connector(conns))

        warnings = await pool.attach(_configs("a", "b"))

        assert warnings == []
        assert pool.connected_provider_ids() == ["a", "b"]
        assert [d.name for d in pool.list_descriptors()] == ["mcp_a_search", "mcp_b_fetch"]
        assert pool.state.mapping["mcp_b_fetch"] == ToolRef("b", "fetch")

    @pytest.mark.asyncio
    async def test_partial_connect(self):
        conns = {
            "a": FakeConnection("a", [RemoteTool("search")]),
            "c": FakeConnection("c", [RemoteTool("list")]),
        }
        pool = ProviderPool(connector=_make_connector(conns, failing={"b"}))

        warnings = await pool.attach(_configs("a", "b", "c"))

        assert pool.connected_provider_ids() == ["a", "c"]
        assert len(warnings) == 1
        assert warnings[0].startswith("b: refused by http://b/sse")
        assert not any(ref.provider_id == "b" for ref in pool.state.mapping.values())

    @pytest.mark.asyncio
    async def test_all_fail(self):
        pool = ProviderPool(connector=_make_connector({}, failing={"a", "b"}))

        with pytest.raises(AllProvidersUnreachable) as exc_info:
            await pool.attach(_configs("a", "b"))

        assert len(exc_info.value.failures) == 2
        assert "All servers failed to connect" in str(exc_info.value)
        assert pool.is_empty()
        assert pool.list_descriptors() == []

    @pytest.mark.asyncio
    async def test_retry_after_all_fail_starts_clean(self):
        conns = {"a": FakeConnection("a", [RemoteTool("search")])}
        pool = ProviderPool(connector=_make_connector(conns, failing={"x"}))

        with pytest.raises(AllProvidersUnreachable):
            await pool.attach(_configs("x"))
        await pool.attach(_configs("a"))

        assert pool.connected_provider_ids() == ["a"]
        assert pool.is_known_tool("mcp_a_search")

    @pytest.mark.asyncio
    async def test_empty_config(self):
        pool = ProviderPool(connector=_make_connector({}))
        with pytest.raises(NoProvidersConfigured, match="No servers configured"):
            await pool.attach({})

    @pytest.mark.asyncio
    async def test_unsupported_type_fails_without_dialing(self):
        conns = {"a": FakeConnection("a", [RemoteTool("search")])}
        connector = _make_connector(conns)
        pool = ProviderPool(connector=connector)
        configs = {
            "a": ServerConfig("http", "http://a/sse"),
            "b": ServerConfig("stdio", "http://b/sse"),
        }

        warnings = await pool.attach(configs)

        assert connector.dialed == ["a"]
        assert warnings == ["b: Unsupported server type for 'b': stdio"]

    @pytest.mark.asyncio
    async def test_missing_type_fails_without_dialing(self):
        conns = {"a": FakeConnection("a", [RemoteTool("search")])}
        connector = _make_connector(conns)
        pool = ProviderPool(connector=connector)
        configs = parse_server_configs({"servers": {
            "a": {"type": "http", "url": "http://a/sse"},
            "b": {"url": "http://b/sse"},
        }})

        warnings = await pool.attach(configs)

        assert connector.dialed == ["a"]
        assert warnings == ["b: Unsupported server type for 'b': (missing)"]

    @pytest.mark.asyncio
    async def test_connect_timeout_is_a_failure(self):
        async def slow(provider_id, config, timeout):
            await asyncio.sleep(10)

        pool = ProviderPool(connector=slow, connect_timeout=0.01)
        with pytest.raises(AllProvidersUnreachable) as exc_info:
            await pool.attach(_configs("a"))
        assert exc_info.value.failures == ["a: timed out after 0.01s"]

    @pytest.mark.asyncio
    async def test_reattach_closes_previous_connections(self):
        first = FakeConnection("a", [RemoteTool("search")])
        second = FakeConnection("a", [RemoteTool("search")])
        handed_out = iter([first, second])

        async def connector(provider_id, config, timeout):
            return next(handed_out)

        pool = ProviderPool(connector=connector)
        await pool.attach(_configs("a"))
        await pool.attach(_configs("a"))

        assert not first.is_open
        assert pool.state.connections["a"] is second


class TestCatalog:
    @pytest.mark.asyncio
    async def test_description_and_schema_fallbacks(self):
        schema = {"type": "object", "properties": {"q": {"type": "string"}}, "required": ["q"]}
        conns = {
            "docs": FakeConnection("docs", [
                RemoteTool("search", "Search docs", schema),
                RemoteTool("ping"),
            ]),
        }
        pool = ProviderPool(connector=_make_connector(conns))
        await pool.attach(_configs("docs"))

        search, ping = pool.list_descriptors()
        assert search.description == "[docs] Search docs"
        assert search.parameters == schema
        assert ping.description == "[docs] MCP tool: ping"
        assert ping.parameters == {"type": "object", "properties": {}, "required": []}

    @pytest.mark.asyncio
    async def test_collision_last_write_wins(self):
        conns = {
            "a.b": FakeConnection("a.b", [RemoteTool("run", "first")]),
            "a_b": FakeConnection("a_b", [RemoteTool("run", "second")]),
        }
        pool = ProviderPool(connector=_make_connector(conns))
        await pool.attach(_configs("a.b", "a_b"))

        descriptors = pool.list_descriptors()
        assert [d.name for d in descriptors] == ["mcp_a_b_run"]
        assert descriptors[0].description == "[a_b] second"
        assert pool.state.mapping["mcp_a_b_run"] == ToolRef("a_b", "run")

    @pytest.mark.asyncio
    async def test_list_tools_failure_is_skipped(self):
        conns = {
            "a": FakeConnection("a", fail_list=True),
            "b": FakeConnection("b", [RemoteTool("fetch")]),
        }
        pool = ProviderPool(connector=_make_connector(conns))
        await pool.attach(_configs("a", "b"))

        assert pool.connected_provider_ids() == ["a", "b"]
        assert [d.name for d in pool.list_descriptors()] == ["mcp_b_fetch"]

    @pytest.mark.asyncio
    async def test_hanging_catalog_is_skipped(self):
        conns = {
            "stuck": FakeConnection("stuck", [RemoteTool("x")], list_delay=3600),
            "b": FakeConnection("b", [RemoteTool("fetch")]),
        }
        pool = ProviderPool(connector=_make_connector(conns), connect_timeout=0.05)

        await asyncio.wait_for(pool.attach(_configs("stuck", "b")), 2)

        assert pool.connected_provider_ids() == ["stuck", "b"]
        assert [d.name for d in pool.list_descriptors()] == ["mcp_b_fetch"]
        # The lock is free again, so dispatch and detach still work
        assert await asyncio.wait_for(pool.dispatch("mcp_b_fetch", {}), 1) == "b:fetch:{}"
        await asyncio.wait_for(pool.detach(), 1)
        assert pool.is_empty()

    @pytest.mark.asyncio
    async def test_catalogs_keep_config_order_regardless_of_latency(self):
        conns = {
            "slow": FakeConnection("slow", [RemoteTool("a")], list_delay=0.05),
            "fast": FakeConnection("fast", [RemoteTool("b")]),
        }
        pool = ProviderPool(connector=_make_connector(conns))
        await pool.attach(_configs("slow", "fast"))

        assert [d.name for d in pool.list_descriptors()] == ["mcp_slow_a", "mcp_fast_b"]

    @pytest.mark.asyncio
    async def test_mapping_and_descriptors_agree(self):
        conns = {
            "a": FakeConnection("a", [RemoteTool("x"), RemoteTool("y")]),
            "b": FakeConnection("b", [RemoteTool("x")]),
        }
        pool = ProviderPool(connector=_make_connector(conns))
        await pool.attach(_configs("a", "b"))

        names = {d.name for d in pool.list_descriptors()}
        assert names == set(pool.state.mapping)

    @pytest.mark.asyncio
    async def test_refresh_picks_up_new_tools(self):
        conn = FakeConnection("a", [RemoteTool("x")])
        pool = ProviderPool(connector=_make_connector({"a": conn}))
        await pool.attach(_configs("a"))

        conn.tools.append(RemoteTool("y"))
        await pool.refresh()

        assert pool.is_known_tool("mcp_a_y")

    @pytest.mark.asyncio
    async def test_summary(self):
        conns = {
            "a": FakeConnection("a", [RemoteTool("x"), RemoteTool("y")]),
            "b": FakeConnection("b", [RemoteTool("z")]),
        }
        pool = ProviderPool(connector=_make_connector(conns))
        await pool.attach(_configs("a", "b"))
        assert pool.summary() == "3 tools from 2 server(s)"


class TestDispatch:
    @pytest.mark.asyncio
    async def test_valid_and_invalid_provider(self):
        conns = {"a": FakeConnection("a", [RemoteTool("search")])}
        pool = ProviderPool(connector=_make_connector(conns))
        configs = {
            "a": ServerConfig("http", "http://a/sse"),
            "b": ServerConfig("websocket", "ws://b"),
        }
        await pool.attach(configs)

        result = await pool.dispatch("mcp_a_search", {"q": "hi"})
        assert result == "a:search:{'q': 'hi'}"
        assert conns["a"].calls == [("search", {"q": "hi"})]

        with pytest.raises(UnknownQualifiedTool, match="mcp_b_search"):
            await pool.dispatch("mcp_b_search", {})

    @pytest.mark.asyncio
    async def test_closed_connection(self):
        conn = FakeConnection("a", [RemoteTool("search")])
        pool = ProviderPool(connector=_make_connector({"a": conn}))
        await pool.attach(_configs("a"))

        conn.is_open = False
        with pytest.raises(ProviderNotConnected, match='Server "a" not connected'):
            await pool.dispatch("mcp_a_search", {})

    @pytest.mark.asyncio
    async def test_provider_error_is_wrapped(self):
        conn = FakeConnection("a", [RemoteTool("explode")])
        pool = ProviderPool(connector=_make_connector({"a": conn}))
        await pool.attach(_configs("a"))

        with pytest.raises(ToolExecutionFailed, match="provider blew up"):
            await pool.dispatch("mcp_a_explode", {})

    @pytest.mark.asyncio
    async def test_dispatch_after_detach(self):
        conn = FakeConnection("a", [RemoteTool("search")])
        pool = ProviderPool(connector=_make_connector({"a": conn}))
        await pool.attach(_configs("a"))
        await pool.detach()

        with pytest.raises(UnknownQualifiedTool):
            await pool.dispatch("mcp_a_search", {})


class TestDetach:
    @pytest.mark.asyncio
    async def test_close_failure_does_not_stop_others(self):
        conns = {
            "a": FakeConnection("a", [RemoteTool("x")], fail_close=True),
            "b": FakeConnection("b", [RemoteTool("y")]),
        }
        pool = ProviderPool(connector=_make_connector(conns))
        await pool.attach(_configs("a", "b"))

        await pool.detach()

        assert not conns["b"].is_open
        assert pool.is_empty()
        assert pool.list_descriptors() == []
        assert pool.summary() == "0 tools from 0 server(s)"

    @pytest.mark.asyncio
    async def test_context_manager_detaches(self):
        conn = FakeConnection("a", [RemoteTool("x")])
        async with ProviderPool(connector=_make_connector({"a": conn})) as pool:
            await pool.attach(_configs("a"))
            assert not pool.is_empty()
        assert not conn.is_open
        assert pool.is_empty()
