"""One MCP session to one remote tool provider over HTTP+SSE.

The SSE transport and the ClientSession are async context managers bound
to the task that entered them, so each connection runs a small owner
task that opens the session, signals readiness, and holds the contexts
open until close() is requested. Requests can be issued from any task.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from mcp import ClientSession, types
from mcp.client.sse import sse_client

from .. import __version__
from ..config import ServerConfig
from ..errors import ToolExecutionFailed

_log = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 15.0


@dataclass(frozen=True)
class RemoteTool:
    """A tool as reported by the provider, before qualification."""

    name: str
    description: str = ""
    input_schema: Optional[dict] = field(default=None)


def flatten_content(content: list[Any]) -> str:
    """Join result segments with newlines; non-text segments become JSON."""
    parts = []
    for item in content:
        if getattr(item, "type", None) == "text":
            parts.append(item.text)
        elif hasattr(item, "model_dump_json"):
            parts.append(item.model_dump_json(exclude_none=True))
        else:
            parts.append(str(item))
    return "\n".join(parts)


class ProviderConnection:
    """A live session to a single provider. Use ProviderConnection.open()."""

    def __init__(self, provider_id: str, config: ServerConfig):
        self.provider_id = provider_id
        self.config = config
        self._session: Optional[ClientSession] = None
        self._closing = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @classmethod
    async def open(
        cls,
        provider_id: str,
        config: ServerConfig,
        timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ) -> "ProviderConnection":
        """Connect and complete the MCP handshake.

        Raises whatever the transport raised, or asyncio.TimeoutError if
        the handshake does not finish within ``timeout`` seconds. On
        failure the owner task is cancelled and nothing stays open.
        """
        conn = cls(provider_id, config)
        loop = asyncio.get_running_loop()
        ready: asyncio.Future = loop.create_future()
        conn._task = asyncio.create_task(
            conn._run(ready), name=f"mcp-connection-{provider_id}",
        )
        try:
            await asyncio.wait_for(asyncio.shield(ready), timeout)
        except BaseException:
            conn._task.cancel()
            await asyncio.gather(conn._task, return_exceptions=True)
            raise
        return conn

    async def _run(self, ready: asyncio.Future) -> None:
        client_info = types.Implementation(
            name=f"switchboard-{self.provider_id}", version=__version__,
        )
        try:
            async with sse_client(self.config.url) as (read_stream, write_stream):
                async with ClientSession(
                    read_stream, write_stream, client_info=client_info,
                ) as session:
                    await session.initialize()
                    self._session = session
                    ready.set_result(None)
                    await self._closing.wait()
        except Exception as e:
            if not ready.done():
                ready.set_exception(e)
            else:
                _log.warning("Connection to %r ended with error: %s", self.provider_id, e)
        finally:
            self._session = None

    @property
    def is_open(self) -> bool:
        return self._session is not None and not self._closing.is_set()

    def _require_session(self) -> ClientSession:
        if not self.is_open:
            raise ToolExecutionFailed(f'Server "{self.provider_id}" connection is closed')
        return self._session

    async def list_tools(self) -> list[RemoteTool]:
        """Query the provider's tool catalog."""
        result = await self._require_session().list_tools()
        return [
            RemoteTool(
                name=tool.name,
                description=tool.description or "",
                input_schema=tool.inputSchema or None,
            )
            for tool in result.tools
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        """Call a tool by its original name and return the result as text."""
        try:
            result = await self._require_session().call_tool(name, arguments)
        except ToolExecutionFailed:
            raise
        except Exception as e:
            raise ToolExecutionFailed(f"MCP tool execution failed: {e}") from e

        text = flatten_content(result.content or [])
        if result.isError:
            _log.warning("Tool %r on %r reported an error: %s", name, self.provider_id, text)
        return text

    async def close(self) -> None:
        """End the session. Safe to call more than once."""
        self._closing.set()
        if self._task is not None:
            task, self._task = self._task, None
            await task
        _log.info("Disconnected from MCP server %r", self.provider_id)

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"<ProviderConnection {self.provider_id!r} {self.config.url} {state}>"
