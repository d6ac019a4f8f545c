"""
LLM provider registry.

Providers are constructed once by the composition root and looked up by
the agent's configured vendor name on every chat turn.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..domain.entities import LLMProviderName
from ..domain.ports import ILLMProvider
from ..exceptions import UnsupportedProviderError
from .base import LLMProviderConfig
from .google import GoogleProvider
from .openai import OpenAIProvider

logger = logging.getLogger(__name__)


class LLMProviderRegistry:
    """Maps vendor names to provider instances."""

    def __init__(self, providers: Optional[dict[str, ILLMProvider]] = None):
        self._providers: dict[str, ILLMProvider] = dict(providers or {})

    @classmethod
    def default(cls, config: Optional[LLMProviderConfig] = None) -> "LLMProviderRegistry":
        """Registry with both shipped vendors."""
        return cls({
            LLMProviderName.OPENAI.value: OpenAIProvider(config),
            LLMProviderName.GOOGLE.value: GoogleProvider(config),
        })

    def register(self, provider: ILLMProvider) -> None:
        self._providers[provider.provider_name] = provider

    def get(self, name: str) -> ILLMProvider:
        """Return the provider for a vendor name.

        Raises:
            UnsupportedProviderError: No provider is registered under that name
        """
        provider = self._providers.get((name or "").lower())
        if provider is None:
            raise UnsupportedProviderError(name, kind="LLM")
        return provider
