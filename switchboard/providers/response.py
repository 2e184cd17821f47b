"""Model replies from provider API calls."""

from dataclasses import dataclass

from ..conversation.turns import AssistantTurn, ToolCallRequest


@dataclass(frozen=True)
class ModelReply:
    """Immutable container for one chat-completion result.

    Wraps the assistant content or tool-call requests along with token
    counts and model info from the API call.
    """

    content: str = ""
    tool_calls: tuple[ToolCallRequest, ...] = ()
    finish_reason: str = "stop"
    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""
    provider: str = ""

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def to_turn(self) -> AssistantTurn:
        return AssistantTurn(content=self.content, tool_calls=self.tool_calls)

