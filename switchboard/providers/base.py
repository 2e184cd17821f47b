"""Base provider interface for chat-completion APIs."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence, TYPE_CHECKING

from .response import ModelReply

if TYPE_CHECKING:
    from ..conversation.turns import ConversationTurn
    from ..tools.schema import ToolDescriptor


@dataclass
class ProviderConfig:
    """Configuration for a provider."""
    api_key: str
    model: str
    base_url: Optional[str] = None
    temperature: float = 0.7
    max_tokens: Optional[int] = None
    timeout: float = 60.0


class BaseProvider(ABC):
    """Abstract base class for all chat providers."""

    def __init__(self, config: ProviderConfig):
        self.config = config
        self.name = self.__class__.__name__

    @abstractmethod
    async def complete(
        self,
        turns: Sequence["ConversationTurn"],
        tools: Sequence["ToolDescriptor"],
    ) -> ModelReply:
        """Send the full conversation and return the model's next turn.

        Args:
            turns: Every turn so far, oldest first.
            tools: Tools the model may call this round. May be empty.

        Returns:
            A ModelReply with either final content or tool-call requests.

        Raises:
            ModelCallFailed: The API could not be reached or answered badly.
        """

    async def aclose(self) -> None:
        """Release network resources. Default is a no-op."""
