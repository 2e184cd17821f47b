"""Chat API providers."""

from .base import BaseProvider, ProviderConfig
from .response import ModelReply
from .openai_provider import OpenAIProvider
from .openrouter import OpenRouterProvider

__all__ = [
    "BaseProvider",
    "ProviderConfig",
    "ModelReply",
    "OpenAIProvider",
    "OpenRouterProvider",
]
