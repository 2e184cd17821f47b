"""Local tool registry: a fixed name -> handler lookup table.

Handlers are plain synchronous callables. Their return value is turned
into text for the model; errors are wrapped so callers only ever see
UnknownTool or ToolExecutionFailed.
"""

import json
import logging
from typing import Any

from ..errors import ToolExecutionFailed, UnknownTool
from .schema import ToolDef, ToolDescriptor

_log = logging.getLogger(__name__)


class LocalToolRegistry:
    """Execute registered local tools by name with argument dicts."""

    def __init__(self, tools: dict[str, ToolDef]):
        self._tools = dict(tools)

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    def list_descriptors(self) -> list[ToolDescriptor]:
        return [td.descriptor for td in self._tools.values()]

    def invoke(self, tool_name: str, arguments: dict[str, Any]) -> str:
        """Run a local tool and return its result as text.

        Args:
            tool_name: Name of the tool to call.
            arguments: Keyword arguments for the tool handler.

        Returns:
            The handler's result; strings pass through, anything else is
            JSON-encoded.

        Raises:
            UnknownTool: No tool is registered under ``tool_name``.
            ToolExecutionFailed: The handler rejected the arguments or raised.
        """
        if tool_name not in self._tools:
            raise UnknownTool(tool_name)

        tool = self._tools[tool_name]
        try:
            result = tool.handler(**arguments)
        except TypeError as e:
            raise ToolExecutionFailed(f"Invalid arguments for {tool_name}: {e}") from e
        except Exception as e:
            _log.debug("Local tool %s raised", tool_name, exc_info=True)
            raise ToolExecutionFailed(f"Tool {tool_name} failed: {e}") from e

        if isinstance(result, str):
            return result
        return json.dumps(result, default=str)
