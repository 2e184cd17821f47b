"""Plugin system for contributing local tools."""

from .base import BasePlugin
from .registry import register_plugin, get_plugin_registry, clear_plugin_registry

__all__ = [
    "BasePlugin",
    "register_plugin",
    "get_plugin_registry",
    "clear_plugin_registry",
]
