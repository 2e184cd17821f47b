"""Conversation loop: model call -> tool execution -> model call -> ... -> answer.

One ``send_message`` call is one exchange. The engine appends a user
turn, offers the model the merged local + remote tool catalog, executes
whatever tools the model asks for, feeds the results back, and stops once
the model answers without tool calls. Tool failures become tool-turn text
so the model can recover; model-call failures and the round limit end
the exchange with a system turn. Nothing is raised to the caller.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, TYPE_CHECKING

from ..errors import (
    ModelCallFailed,
    SwitchboardError,
    ToolExecutionFailed,
    ToolLoopExceeded,
    UnknownTool,
)
from ..tools.executor import LocalToolRegistry
from ..tools.schema import ToolDescriptor
from .turns import (
    AssistantTurn,
    ConversationTurn,
    SystemTurn,
    ToolCallRequest,
    ToolTurn,
    UserTurn,
)

if TYPE_CHECKING:
    from ..providers.base import BaseProvider
    from ..remote.pool import ProviderPool

_log = logging.getLogger(__name__)


class ExchangeState(Enum):
    AWAITING_USER = "awaiting_user"
    MODEL_CALL = "model_call"
    TOOL_EXECUTION = "tool_execution"
    DONE = "done"


class RouteKind(Enum):
    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class ToolRoute:
    """Which source executes a tool name."""

    kind: RouteKind
    name: str


@dataclass(frozen=True)
class ExchangeResult:
    """Outcome of one exchange.

    ``error`` is set when the exchange ended on a model-call failure or
    the round limit; the matching system turn is already in the history.
    """

    state: ExchangeState
    rounds: int
    reply: Optional[AssistantTurn] = None
    error: Optional[SwitchboardError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_arguments(call: ToolCallRequest) -> dict[str, Any]:
    """Decode a tool call's JSON argument text. Empty text means no arguments."""
    text = (call.arguments or "").strip()
    if not text:
        return {}
    try:
        arguments = json.loads(text)
    except json.JSONDecodeError as e:
        raise ToolExecutionFailed(f"invalid arguments for {call.name}: {e}") from e
    if not isinstance(arguments, dict):
        raise ToolExecutionFailed(
            f"invalid arguments for {call.name}: expected a JSON object",
        )
    return arguments


class ConversationEngine:
    """Drive exchanges against one chat provider with local and remote tools."""

    def __init__(
        self,
        provider: "BaseProvider",
        local_tools: LocalToolRegistry,
        pool: Optional["ProviderPool"] = None,
        *,
        max_rounds: Optional[int] = 10,
        tool_timeout: float = 60.0,
        model_timeout: float = 120.0,
        system_prompt: Optional[str] = None,
        on_turn: Optional[Callable[[ConversationTurn], None]] = None,
    ):
        self.provider = provider
        self.local_tools = local_tools
        self.pool = pool
        self.max_rounds = max_rounds
        self.tool_timeout = tool_timeout
        self.model_timeout = model_timeout
        self.system_prompt = system_prompt
        self.on_turn = on_turn
        self.state = ExchangeState.AWAITING_USER
        self._turns: list[ConversationTurn] = []
        self._busy = False
        self.reset()

    @property
    def history(self) -> tuple[ConversationTurn, ...]:
        """Every turn so far, including intermediate tool turns."""
        return tuple(self._turns)

    def reset(self) -> None:
        """Start a new conversation, keeping the system prompt if any."""
        if self._busy:
            raise RuntimeError("Cannot reset while an exchange is in progress")
        self._turns = []
        self.state = ExchangeState.AWAITING_USER
        if self.system_prompt:
            self._turns.append(SystemTurn(self.system_prompt))

    def _append(self, turn: ConversationTurn) -> None:
        self._turns.append(turn)
        if self.on_turn is None:
            return
        # A failing observer must not abort the exchange
        try:
            self.on_turn(turn)
        except Exception:
            _log.exception("on_turn callback failed for %s turn", turn.role)

    # ------------------------------------------------------------------
    # Tool catalog
    # ------------------------------------------------------------------

    def catalog(self) -> tuple[list[ToolDescriptor], dict[str, ToolRoute]]:
        """Merge local and remote descriptors; local names win."""
        descriptors = []
        routes: dict[str, ToolRoute] = {}

        for desc in self.local_tools.list_descriptors():
            routes[desc.name] = ToolRoute(RouteKind.LOCAL, desc.name)
            descriptors.append(desc)

        if self.pool is not None and not self.pool.is_empty():
            for desc in self.pool.list_descriptors():
                if desc.name in routes:
                    _log.warning("Remote tool %r is shadowed by a local tool", desc.name)
                    continue
                routes[desc.name] = ToolRoute(RouteKind.REMOTE, desc.name)
                descriptors.append(desc)

        return descriptors, routes

    def _resolve(self, name: str, routes: dict[str, ToolRoute]) -> ToolRoute:
        route = routes.get(name)
        if route is not None:
            return route
        if self.local_tools.has_tool(name):
            return ToolRoute(RouteKind.LOCAL, name)
        if self.pool is not None and self.pool.is_known_tool(name):
            return ToolRoute(RouteKind.REMOTE, name)
        raise UnknownTool(name)

    # ------------------------------------------------------------------
    # Exchange
    # ------------------------------------------------------------------

    async def send_message(self, text: str) -> ExchangeResult:
        """Run one full exchange for a user message.

        Raises:
            RuntimeError: Another exchange is still running on this engine.
        """
        if self._busy:
            raise RuntimeError("An exchange is already in progress")
        self._busy = True
        try:
            return await self._run_exchange(text)
        finally:
            self._busy = False

    async def _run_exchange(self, text: str) -> ExchangeResult:
        self._append(UserTurn(text))
        tools, routes = self.catalog()
        rounds = 0

        while True:
            self.state = ExchangeState.MODEL_CALL
            try:
                reply = await self._call_model(tools)
            except ModelCallFailed as e:
                _log.error("Model call failed: %s", e)
                return self._finish(rounds, error=e)

            if not reply.has_tool_calls:
                turn = AssistantTurn(content=reply.content)
                self._append(turn)
                return self._finish(rounds, reply=turn)

            if self.max_rounds is not None and rounds >= self.max_rounds:
                error = ToolLoopExceeded(self.max_rounds)
                _log.warning("%s", error)
                return self._finish(rounds, error=error)

            rounds += 1
            self.state = ExchangeState.TOOL_EXECUTION
            self._append(reply.to_turn())
            _log.debug("Round %d: executing %d tool call(s)", rounds, len(reply.tool_calls))

            # gather() preserves request order regardless of completion order
            results = await asyncio.gather(
                *(self._execute(call, routes) for call in reply.tool_calls),
            )
            for call, content in zip(reply.tool_calls, results):
                self._append(ToolTurn(tool_call_id=call.id, content=content, name=call.name))

    async def _call_model(self, tools: list[ToolDescriptor]):
        try:
            return await asyncio.wait_for(
                self.provider.complete(self.history, tools), self.model_timeout,
            )
        except ModelCallFailed:
            raise
        except asyncio.TimeoutError as e:
            raise ModelCallFailed(f"Model call timed out after {self.model_timeout:g}s") from e
        except Exception as e:
            raise ModelCallFailed(str(e) or type(e).__name__) from e

    def _finish(
        self,
        rounds: int,
        reply: Optional[AssistantTurn] = None,
        error: Optional[SwitchboardError] = None,
    ) -> ExchangeResult:
        if error is not None:
            self._append(SystemTurn(f"Error: {error}"))
        self.state = ExchangeState.DONE
        return ExchangeResult(ExchangeState.DONE, rounds, reply=reply, error=error)

    async def _execute(self, call: ToolCallRequest, routes: dict[str, ToolRoute]) -> str:
        """Run one tool call and return its text; failures become error text."""
        try:
            arguments = parse_arguments(call)
            route = self._resolve(call.name, routes)
            if route.kind is RouteKind.LOCAL:
                return self.local_tools.invoke(route.name, arguments)
            return await asyncio.wait_for(
                self.pool.dispatch(route.name, arguments), self.tool_timeout,
            )
        except asyncio.TimeoutError:
            _log.warning("Tool %r timed out after %gs", call.name, self.tool_timeout)
            return f"Error: tool {call.name} timed out after {self.tool_timeout:g}s"
        except SwitchboardError as e:
            _log.info("Tool %r failed: %s", call.name, e)
            return f"Error: {e}"
        except Exception as e:
            _log.exception("Tool %r raised unexpectedly", call.name)
            return f"Error: Tool {call.name} failed: {e}"
