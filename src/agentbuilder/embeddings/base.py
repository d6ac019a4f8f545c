"""
Base embedding provider.

Vendors implement _embed(); generate_embeddings() adds the fallback
contract: an empty API key or *any* vendor failure yields the
deterministic mock embedding instead of an exception.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from ..domain.entities import EmbeddingResult
from ..domain.ports import IEmbeddingProvider
from .mock import mock_embedding

logger = logging.getLogger(__name__)


class BaseEmbeddingProvider(IEmbeddingProvider, ABC):
    """Shared fallback behaviour for embedding vendors.

    Args:
        client_factory: Builds a vendor SDK client from an API key
    """

    def __init__(self, client_factory: Optional[Callable[[str], Any]] = None):
        self._client_factory = client_factory

    def _client(self, api_key: str) -> Any:
        factory = self._client_factory or self._default_client
        return factory(api_key)

    @abstractmethod
    def _default_client(self, api_key: str) -> Any:
        pass

    @abstractmethod
    async def _embed(self, client: Any, text: str, model: str) -> list[float]:
        pass

    async def generate_embeddings(
        self, text: str, api_key: str, model: Optional[str] = None
    ) -> EmbeddingResult:
        if not api_key or not api_key.strip():
            logger.warning("No API key provided, using mock embeddings")
            return mock_embedding(text)

        model = model or self.default_model
        try:
            vector = await self._embed(self._client(api_key), text, model)
        except Exception as e:
            # Quota, invalid key, network: degrade to offline vectors
            logger.warning(
                f"{self.provider_name} embeddings failed ({e}), using mock embeddings"
            )
            return mock_embedding(text)

        return EmbeddingResult(vector=vector, dimensions=len(vector), model=model)

    async def generate_batch_embeddings(
        self, texts: list[str], api_key: str, model: Optional[str] = None
    ) -> list[EmbeddingResult]:
        """Embed texts one after another (vendor batch APIs are not used)."""
        results = []
        for text in texts:
            results.append(await self.generate_embeddings(text, api_key, model))
        return results
