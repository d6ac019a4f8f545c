"""LLM provider implementations and the shared tool manifest."""

from .base import BaseLLMProvider, LLMProviderConfig, LLMProviderError
from .factory import LLMProviderRegistry
from .google import GoogleProvider
from .manifest import ToolManifestBuilder
from .openai import OpenAIProvider

__all__ = [
    "BaseLLMProvider",
    "GoogleProvider",
    "LLMProviderConfig",
    "LLMProviderError",
    "LLMProviderRegistry",
    "OpenAIProvider",
    "ToolManifestBuilder",
]
