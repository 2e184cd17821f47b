"""Provider pool: many MCP connections behind one flat tool namespace.

The pool owns every live ProviderConnection, the flattened list of
qualified ToolDescriptors, and the qualified-name -> (provider, tool)
mapping. All three live in one immutable PoolState that is rebuilt from
scratch and swapped in whole; attach, detach and refresh hold the pool
lock for their full duration so dispatch never sees a half-built state.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, Optional

from ..config import ServerConfig
from ..errors import (
    AllProvidersUnreachable,
    NoProvidersConfigured,
    ProviderNotConnected,
    SwitchboardError,
    ToolExecutionFailed,
    UnknownQualifiedTool,
    UnsupportedProviderType,
)
from ..tools.schema import ToolDescriptor, empty_parameters
from .connection import DEFAULT_CONNECT_TIMEOUT, ProviderConnection
from .naming import qualify

_log = logging.getLogger(__name__)

Connector = Callable[[str, ServerConfig, float], Awaitable[ProviderConnection]]


@dataclass(frozen=True)
class ToolRef:
    """Where a qualified name points: the owning provider and its raw tool name."""

    provider_id: str
    tool_name: str


@dataclass(frozen=True)
class PoolState:
    """Active connections plus the catalog and mapping derived from them."""

    connections: Mapping[str, ProviderConnection] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    tools: tuple[ToolDescriptor, ...] = ()
    mapping: Mapping[str, ToolRef] = field(
        default_factory=lambda: MappingProxyType({}),
    )


def _describe(exc: BaseException) -> str:
    """Readable message for a connection failure, unwrapping exception groups."""
    nested = getattr(exc, "exceptions", None)
    if nested:
        return _describe(nested[0])
    return str(exc) or type(exc).__name__


class ProviderPool:
    """Connect to many MCP servers and route qualified tool calls to them."""

    def __init__(
        self,
        connector: Optional[Connector] = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ):
        self._connector = connector or ProviderConnection.open
        self.connect_timeout = connect_timeout
        self._lock = asyncio.Lock()
        self._state = PoolState()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def attach(self, configs: Mapping[str, ServerConfig]) -> list[str]:
        """Replace the pool with fresh connections to every configured server.

        Servers are dialed concurrently and every outcome is collected
        before the catalog is built.

        Returns:
            One ``"<id>: <reason>"`` message per server that failed while
            at least one other succeeded.

        Raises:
            NoProvidersConfigured: ``configs`` is empty.
            AllProvidersUnreachable: No server could be connected. The pool
                is left empty.
        """
        async with self._lock:
            await self._teardown()

            if not configs:
                raise NoProvidersConfigured()

            provider_ids = list(configs)
            outcomes = await asyncio.gather(
                *(self._connect(pid, configs[pid]) for pid in provider_ids),
                return_exceptions=True,
            )

            connections = {}
            failures = []
            for pid, outcome in zip(provider_ids, outcomes):
                if isinstance(outcome, BaseException):
                    failures.append(f"{pid}: {_describe(outcome)}")
                else:
                    connections[pid] = outcome

            if not connections:
                _log.error("All servers failed to connect: %s", ", ".join(failures))
                raise AllProvidersUnreachable(failures)

            if failures:
                _log.warning("Some servers failed to connect: %s", ", ".join(failures))

            self._state = await self._build_state(connections)
            return failures

    async def _connect(self, provider_id: str, config: ServerConfig) -> ProviderConnection:
        if not config.is_supported:
            raise UnsupportedProviderType(provider_id, config.type)

        _log.info("Connecting to MCP server %r at %s", provider_id, config.url)
        try:
            conn = await asyncio.wait_for(
                self._connector(provider_id, config, self.connect_timeout),
                self.connect_timeout,
            )
        except asyncio.TimeoutError:
            raise TimeoutError(f"timed out after {self.connect_timeout:g}s") from None
        _log.info("Connected to MCP server %r", provider_id)
        return conn

    async def detach(self) -> None:
        """Close every connection and clear the pool."""
        async with self._lock:
            await self._teardown()

    async def _teardown(self) -> None:
        connections = self._state.connections
        try:
            if connections:
                results = await asyncio.gather(
                    *(conn.close() for conn in connections.values()),
                    return_exceptions=True,
                )
                for pid, result in zip(connections, results):
                    if isinstance(result, Exception):
                        _log.error("Error disconnecting from %r: %s", pid, result)
        finally:
            self._state = PoolState()

    async def refresh(self) -> None:
        """Rebuild the catalog from the currently attached connections."""
        async with self._lock:
            self._state = await self._build_state(dict(self._state.connections))

    async def _build_state(self, connections: dict[str, ProviderConnection]) -> PoolState:
        """Query every connection's catalog and derive tools + mapping together.

        Catalogs are queried concurrently, each bounded by the connect
        timeout. A provider whose query fails or times out contributes no
        tools but stays connected. Qualified-name collisions are resolved
        last-write-wins in connection order.
        """
        provider_ids = list(connections)
        catalogs = await asyncio.gather(
            *(self._list_tools(pid, connections[pid]) for pid in provider_ids),
            return_exceptions=True,
        )

        descriptors: dict[str, ToolDescriptor] = {}
        mapping: dict[str, ToolRef] = {}

        for pid, remote_tools in zip(provider_ids, catalogs):
            if isinstance(remote_tools, BaseException):
                _log.error("Failed to list tools from server %r: %s", pid, _describe(remote_tools))
                continue

            for tool in remote_tools:
                qualified = qualify(pid, tool.name)
                previous = mapping.get(qualified)
                if previous is not None:
                    _log.warning(
                        "Tool %r from server %r shadows %r from server %r",
                        tool.name, pid, previous.tool_name, previous.provider_id,
                    )
                    del descriptors[qualified]

                mapping[qualified] = ToolRef(pid, tool.name)
                descriptors[qualified] = ToolDescriptor(
                    name=qualified,
                    description=f"[{pid}] {tool.description or f'MCP tool: {tool.name}'}",
                    parameters=tool.input_schema or empty_parameters(),
                )

            _log.info("Loaded %d tools from server %r", len(remote_tools), pid)

        _log.info("Total tools loaded: %d", len(descriptors))
        return PoolState(
            connections=MappingProxyType(dict(connections)),
            tools=tuple(descriptors.values()),
            mapping=MappingProxyType(mapping),
        )

    async def _list_tools(self, provider_id: str, conn: ProviderConnection):
        try:
            return await asyncio.wait_for(conn.list_tools(), self.connect_timeout)
        except asyncio.TimeoutError:
            raise TimeoutError(
                f"tool listing for {provider_id!r} timed out after {self.connect_timeout:g}s"
            ) from None

    async def __aenter__(self) -> "ProviderPool":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.detach()

    # ------------------------------------------------------------------
    # Queries and dispatch
    # ------------------------------------------------------------------

    @property
    def state(self) -> PoolState:
        return self._state

    def is_empty(self) -> bool:
        return not self._state.connections

    def list_descriptors(self) -> list[ToolDescriptor]:
        return list(self._state.tools)

    def is_known_tool(self, name: str) -> bool:
        return name in self._state.mapping

    def connected_provider_ids(self) -> list[str]:
        return list(self._state.connections)

    def summary(self) -> str:
        state = self._state
        return f"{len(state.tools)} tools from {len(state.connections)} server(s)"

    async def dispatch(self, qualified_name: str, arguments: dict[str, Any]) -> str:
        """Forward a qualified tool call to the provider that owns it.

        Raises:
            UnknownQualifiedTool: The name is not in the current mapping.
            ProviderNotConnected: The owning connection has been closed.
            ToolExecutionFailed: The provider call itself failed.
        """
        # Wait out any in-flight attach/detach, then work from one snapshot
        async with self._lock:
            state = self._state

        ref = state.mapping.get(qualified_name)
        if ref is None:
            raise UnknownQualifiedTool(qualified_name)

        conn = state.connections.get(ref.provider_id)
        if conn is None or not conn.is_open:
            raise ProviderNotConnected(ref.provider_id)

        try:
            return await conn.call_tool(ref.tool_name, arguments)
        except SwitchboardError:
            raise
        except Exception as e:
            _log.error("Tool %r on %r failed: %s", ref.tool_name, ref.provider_id, e)
            raise ToolExecutionFailed(f"MCP tool execution failed: {e}") from e
