"""Embedding providers with deterministic offline fallback."""

from .base import BaseEmbeddingProvider
from .factory import EmbeddingProviderRegistry
from .google import GoogleEmbeddingProvider
from .mock import MOCK_DIMENSIONS, mock_embedding, text_hash
from .openai import OpenAIEmbeddingProvider

__all__ = [
    "BaseEmbeddingProvider",
    "EmbeddingProviderRegistry",
    "GoogleEmbeddingProvider",
    "MOCK_DIMENSIONS",
    "OpenAIEmbeddingProvider",
    "mock_embedding",
    "text_hash",
]
