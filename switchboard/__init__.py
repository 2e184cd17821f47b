"""Switchboard - one chat loop over local tools and many MCP servers."""

__version__ = "0.1.0"

from .cli import cli, get_app, SwitchboardApp
from .config import ConfigManager, ServerConfig
from .conversation import ConversationEngine
from .remote import ProviderPool

__all__ = [
    "cli",
    "get_app",
    "SwitchboardApp",
    "ConfigManager",
    "ServerConfig",
    "ConversationEngine",
    "ProviderPool",
]
