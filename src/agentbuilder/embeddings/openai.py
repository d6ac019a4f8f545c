"""OpenAI embeddings provider."""

from __future__ import annotations

import logging
from typing import Any

from openai import AsyncOpenAI

from ..domain.entities import LLMProviderName
from .base import BaseEmbeddingProvider

logger = logging.getLogger(__name__)


class OpenAIEmbeddingProvider(BaseEmbeddingProvider):
    """Embeddings via the OpenAI embeddings endpoint."""

    DEFAULT_MODEL = "text-embedding-3-small"

    @property
    def provider_name(self) -> str:
        return LLMProviderName.OPENAI.value

    @property
    def default_model(self) -> str:
        return self.DEFAULT_MODEL

    def _default_client(self, api_key: str) -> AsyncOpenAI:
        return AsyncOpenAI(api_key=api_key)

    async def _embed(self, client: Any, text: str, model: str) -> list[float]:
        response = await client.embeddings.create(model=model, input=text)
        return list(response.data[0].embedding)
