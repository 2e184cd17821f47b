"""Base plugin interface for contributing local tools."""

from abc import ABC, abstractmethod
from typing import Any


class BasePlugin(ABC):
    """Abstract base class for all Switchboard plugins."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique plugin identifier."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Short description of what this plugin does."""

    @abstractmethod
    def get_tools(self) -> dict[str, Any]:
        """Return a mapping of tool_name -> callable for this plugin.

        Each callable becomes a local tool the model can invoke.
        """
