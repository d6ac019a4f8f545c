"""Google embeddings provider (google-genai SDK)."""

from __future__ import annotations

import logging
from typing import Any

from google import genai

from ..domain.entities import LLMProviderName
from .base import BaseEmbeddingProvider

logger = logging.getLogger(__name__)


class GoogleEmbeddingProvider(BaseEmbeddingProvider):
    """Embeddings via Gemini embed_content."""

    DEFAULT_MODEL = "embedding-001"

    @property
    def provider_name(self) -> str:
        return LLMProviderName.GOOGLE.value

    @property
    def default_model(self) -> str:
        return self.DEFAULT_MODEL

    def _default_client(self, api_key: str) -> genai.Client:
        return genai.Client(api_key=api_key)

    async def _embed(self, client: Any, text: str, model: str) -> list[float]:
        name = model if model.startswith("models/") else f"models/{model}"
        response = await client.aio.models.embed_content(model=name, contents=text)
        return list(response.embeddings[0].values)
