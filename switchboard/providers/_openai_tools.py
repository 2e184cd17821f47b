"""Shared OpenAI-compatible chat completions logic.

Used by both OpenAIProvider and OpenRouterProvider since they share
the same chat completions API format for tool calling.
"""

import logging
from typing import Optional, Sequence

import httpx

from ..conversation.turns import (
    AssistantTurn,
    ConversationTurn,
    ToolCallRequest,
    ToolTurn,
)
from ..errors import ModelCallFailed
from ..tools.schema import ToolDescriptor
from .response import ModelReply

_log = logging.getLogger(__name__)


def turn_to_message(turn: ConversationTurn) -> dict:
    """Convert one conversation turn to a chat completions message."""
    if isinstance(turn, ToolTurn):
        return {
            "role": "tool",
            "tool_call_id": turn.tool_call_id,
            "content": turn.content,
        }
    if isinstance(turn, AssistantTurn) and turn.tool_calls:
        return {
            "role": "assistant",
            "content": turn.content or None,
            "tool_calls": [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {"name": tc.name, "arguments": tc.arguments},
                }
                for tc in turn.tool_calls
            ],
        }
    return {"role": turn.role, "content": turn.content}


def descriptor_to_tool(descriptor: ToolDescriptor) -> dict:
    return {
        "type": "function",
        "function": {
            "name": descriptor.name,
            "description": descriptor.description,
            "parameters": descriptor.parameters,
        },
    }


def build_payload(
    model: str,
    temperature: float,
    max_tokens: Optional[int],
    turns: Sequence[ConversationTurn],
    tools: Sequence[ToolDescriptor],
) -> dict:
    """Request body for one chat completions round-trip."""
    payload = {
        "model": model,
        "messages": [turn_to_message(t) for t in turns],
        "temperature": temperature,
    }
    if tools:
        payload["tools"] = [descriptor_to_tool(d) for d in tools]
    if max_tokens:
        payload["max_tokens"] = max_tokens
    return payload


def parse_reply(data: dict, provider: str = "") -> ModelReply:
    """Turn a chat completions response body into a ModelReply."""
    choices = data.get("choices") or []
    if not choices:
        raise ModelCallFailed("Model returned no choices")

    message = choices[0].get("message") or {}
    finish_reason = choices[0].get("finish_reason") or "stop"

    tool_calls = tuple(
        ToolCallRequest(
            id=tc.get("id", ""),
            name=(tc.get("function") or {}).get("name", ""),
            arguments=(tc.get("function") or {}).get("arguments") or "{}",
        )
        for tc in message.get("tool_calls") or []
    )

    usage = data.get("usage") or {}
    return ModelReply(
        content=message.get("content") or "",
        tool_calls=tool_calls,
        finish_reason=finish_reason,
        input_tokens=usage.get("prompt_tokens", 0),
        output_tokens=usage.get("completion_tokens", 0),
        model=data.get("model", ""),
        provider=provider,
    )


async def openai_complete(
    client: httpx.AsyncClient,
    url: str,
    headers: dict,
    model: str,
    temperature: float,
    max_tokens: Optional[int],
    turns: Sequence[ConversationTurn],
    tools: Sequence[ToolDescriptor],
    provider: str = "",
) -> ModelReply:
    """One OpenAI-compatible chat completions round-trip.

    Args:
        client: httpx.AsyncClient instance.
        url: Chat completions endpoint URL.
        headers: Request headers with auth.
        model: Model identifier.
        temperature: Sampling temperature.
        max_tokens: Max response tokens.
        turns: Full conversation history.
        tools: Tool descriptors offered this round.
        provider: Provider name recorded on the reply.

    Returns:
        The parsed ModelReply.

    Raises:
        ModelCallFailed: Network error, HTTP error status, or bad body.
    """
    payload = build_payload(model, temperature, max_tokens, turns, tools)

    try:
        response = await client.post(url, json=payload, headers=headers)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        _log.error("Chat API returned %s: %s", e.response.status_code, e.response.text[:500])
        raise ModelCallFailed(f"{e.response.status_code} from chat API: {_error_text(e.response)}") from e
    except (httpx.HTTPError, ValueError) as e:
        _log.error("Chat API call failed: %s", e)
        raise ModelCallFailed(str(e) or type(e).__name__) from e

    if not isinstance(data, dict):
        raise ModelCallFailed("Chat API returned a non-object body")
    return parse_reply(data, provider=provider)


def _error_text(response: httpx.Response) -> str:
    """Best-effort error message from an OpenAI-style error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
    return response.text[:200]
