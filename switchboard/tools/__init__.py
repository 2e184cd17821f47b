"""Local tool system.

Builds the local tool registry from all registered plugins.
"""

import importlib
import sys
from typing import Optional

from .schema import ToolDef, ToolDescriptor, callable_to_tool_def, empty_parameters
from .executor import LocalToolRegistry

# Modules whose import registers a plugin
_PLUGIN_MODULES = ("switchboard.tools.clock",)


def discover_plugins() -> None:
    """Import built-in plugin modules to trigger @register_plugin.

    Already-imported modules are reloaded so the decorators re-run after
    clear_plugin_registry().
    """
    for fqn in _PLUGIN_MODULES:
        if fqn in sys.modules:
            importlib.reload(sys.modules[fqn])
        else:
            importlib.import_module(fqn)


def build_tool_registry(enabled: Optional[dict[str, bool]] = None) -> LocalToolRegistry:
    """Collect tools from every enabled plugin into a LocalToolRegistry.

    Args:
        enabled: Optional plugin_name -> bool switches. Plugins missing
            from the mapping are enabled.
    """
    from ..plugins.registry import get_plugin_registry

    discover_plugins()
    enabled = enabled or {}
    tools = {}
    for plugin_name, plugin_cls in get_plugin_registry().items():
        if not enabled.get(plugin_name, True):
            continue
        plugin = plugin_cls()
        for tool_name, fn in plugin.get_tools().items():
            tools[tool_name] = callable_to_tool_def(
                tool_name, fn, description=plugin.description,
            )
    return LocalToolRegistry(tools)


__all__ = [
    "ToolDef",
    "ToolDescriptor",
    "callable_to_tool_def",
    "empty_parameters",
    "LocalToolRegistry",
    "discover_plugins",
    "build_tool_registry",
]
