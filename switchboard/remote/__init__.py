"""Remote tool providers reached over MCP."""

from .naming import qualify, sanitize
from .connection import ProviderConnection, RemoteTool
from .pool import PoolState, ProviderPool, ToolRef

__all__ = [
    "qualify",
    "sanitize",
    "ProviderConnection",
    "RemoteTool",
    "PoolState",
    "ProviderPool",
    "ToolRef",
]
