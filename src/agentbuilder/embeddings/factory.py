"""
Embedding provider registry.

The embedding vendor is not configured separately: an agent whose LLM
vendor is Google embeds with Google, every other agent embeds with OpenAI.
"""

from __future__ import annotations

from typing import Optional

from ..domain.entities import LLMProviderName
from ..domain.ports import IEmbeddingProvider
from ..exceptions import UnsupportedProviderError
from .google import GoogleEmbeddingProvider
from .openai import OpenAIEmbeddingProvider


class EmbeddingProviderRegistry:
    """Maps vendor names to embedding providers."""

    def __init__(self, providers: Optional[dict[str, IEmbeddingProvider]] = None):
        self._providers: dict[str, IEmbeddingProvider] = dict(providers or {})

    @classmethod
    def default(cls) -> "EmbeddingProviderRegistry":
        return cls({
            LLMProviderName.OPENAI.value: OpenAIEmbeddingProvider(),
            LLMProviderName.GOOGLE.value: GoogleEmbeddingProvider(),
        })

    def get(self, name: str) -> IEmbeddingProvider:
        provider = self._providers.get(name)
        if provider is None:
            raise UnsupportedProviderError(name, kind="embeddings")
        return provider

    def for_llm_provider(self, llm_provider: str) -> IEmbeddingProvider:
        """Pick the embedding vendor that matches an agent's LLM vendor."""
        if (llm_provider or "").lower() == LLMProviderName.GOOGLE.value:
            return self.get(LLMProviderName.GOOGLE.value)
        return self.get(LLMProviderName.OPENAI.value)
