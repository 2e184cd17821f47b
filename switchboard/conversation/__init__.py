"""Conversation turns and the tool-calling loop."""

from .turns import (
    AssistantTurn,
    ConversationTurn,
    SystemTurn,
    ToolCallRequest,
    ToolTurn,
    UserTurn,
)
from .engine import ConversationEngine, ExchangeResult, ExchangeState

__all__ = [
    "AssistantTurn",
    "ConversationTurn",
    "SystemTurn",
    "ToolCallRequest",
    "ToolTurn",
    "UserTurn",
    "ConversationEngine",
    "ExchangeResult",
    "ExchangeState",
]
