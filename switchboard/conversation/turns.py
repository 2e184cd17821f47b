"""Conversation turns.

Turns are frozen: once appended to a conversation they never change.
Each kind fixes its ``role`` so code can switch on it the same way the
chat API does.
"""

from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class ToolCallRequest:
    """One tool invocation requested by the model.

    ``arguments`` is the raw JSON text exactly as the model produced it.
    """

    id: str
    name: str
    arguments: str = "{}"


@dataclass(frozen=True)
class UserTurn:
    """A message typed by the user."""

    content: str
    role: str = field(default="user", init=False)


@dataclass(frozen=True)
class SystemTurn:
    """A system prompt, or an error recorded by the engine."""

    content: str
    role: str = field(default="system", init=False)


@dataclass(frozen=True)
class AssistantTurn:
    """A model reply: either final content or pending tool calls."""

    content: str = ""
    tool_calls: tuple[ToolCallRequest, ...] = ()
    role: str = field(default="assistant", init=False)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


@dataclass(frozen=True)
class ToolTurn:
    """The text result of one tool call."""

    tool_call_id: str
    content: str
    name: str = ""
    role: str = field(default="tool", init=False)


ConversationTurn = Union[UserTurn, SystemTurn, AssistantTurn, ToolTurn]
