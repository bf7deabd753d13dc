"""LLM module: providers, retry policy, prompts and the stage client."""

from .client import AIClient
from .providers import (
    GeminiProvider,
    LLMProvider,
    OpenAICompatibleProvider,
    OpenRouterProvider,
    create_provider,
)
from .retry import RetryController, classify_error, parse_retry_after

__all__ = [
    "AIClient",
    "GeminiProvider",
    "LLMProvider",
    "OpenAICompatibleProvider",
    "OpenRouterProvider",
    "RetryController",
    "classify_error",
    "create_provider",
    "parse_retry_after",
]
