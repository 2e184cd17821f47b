"""Exception hierarchy for Switchboard."""

from typing import Iterable


class SwitchboardError(Exception):
    """Base class for all Switchboard errors."""


class ConfigError(SwitchboardError):
    """Server or provider configuration could not be parsed."""


class UnsupportedProviderType(ConfigError):
    """A server entry declares a transport type other than ``http``."""

    def __init__(self, provider_id: str, provider_type: str):
        super().__init__(
            f"Unsupported server type for '{provider_id}': {provider_type or '(missing)'}"
        )
        self.provider_id = provider_id
        self.provider_type = provider_type


class NoProvidersConfigured(ConfigError):
    """attach() was called with an empty server mapping."""

    def __init__(self) -> None:
        super().__init__("No servers configured")


class UnknownTool(SwitchboardError):
    """A local tool name is not in the registry."""

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class UnknownQualifiedTool(SwitchboardError):
    """A qualified name has no entry in the pool's name mapping."""

    def __init__(self, name: str):
        super().__init__(f"Unknown MCP tool: {name}")
        self.name = name


class ProviderNotConnected(SwitchboardError):
    """The connection that owns a mapped tool is gone."""

    def __init__(self, provider_id: str):
        super().__init__(f'Server "{provider_id}" not connected')
        self.provider_id = provider_id


class AllProvidersUnreachable(SwitchboardError):
    """Every configured provider failed to connect."""

    def __init__(self, failures: Iterable[str]):
        self.failures = list(failures)
        super().__init__(f"All servers failed to connect: {', '.join(self.failures)}")


class ModelCallFailed(SwitchboardError):
    """The chat API round-trip failed."""


class ToolExecutionFailed(SwitchboardError):
    """A local handler or remote provider raised while running a tool."""


class ToolLoopExceeded(SwitchboardError):
    """The model kept requesting tools past the configured round limit."""

    def __init__(self, max_rounds: int):
        super().__init__(f"Tool calling exceeded {max_rounds} rounds without a final answer")
        self.max_rounds = max_rounds
