"""OpenAI chat completions provider."""

from typing import Sequence, TYPE_CHECKING

import httpx

from .base import BaseProvider, ProviderConfig
from .registry import register_provider
from .response import ModelReply
from ._openai_tools import openai_complete

if TYPE_CHECKING:
    from ..conversation.turns import ConversationTurn
    from ..tools.schema import ToolDescriptor

DEFAULT_MODEL = "gpt-4o-mini"


@register_provider("openai")
class OpenAIProvider(BaseProvider):
    """OpenAI API provider - supports custom base_url for Azure/proxies."""

    def __init__(self, config: ProviderConfig):
        super().__init__(config)
        self.base_url = (config.base_url or "https://api.openai.com/v1").rstrip("/")
        self.client = httpx.AsyncClient(timeout=config.timeout)

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

    async def complete(
        self,
        turns: Sequence["ConversationTurn"],
        tools: Sequence["ToolDescriptor"],
    ) -> ModelReply:
        return await openai_complete(
            client=self.client,
            url=f"{self.base_url}/chat/completions",
            headers=self._headers(),
            model=self.config.model or DEFAULT_MODEL,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            turns=turns,
            tools=tools,
            provider="openai",
        )

    async def aclose(self) -> None:
        await self.client.aclose()
