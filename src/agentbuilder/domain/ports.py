"""
Port interfaces (abstract base classes) for the agent builder.

These define the contracts that adapters must implement.
Following the Ports & Adapters (Hexagonal) architecture pattern.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..actions.transport import HttpRequest, HttpResponse
    from .entities import (
        Action,
        Agent,
        EmbeddingResult,
        KnowledgeBase,
        LLMResponse,
        Message,
        Secret,
        VectorChunk,
        VectorItem,
        VectorMatch,
    )


# ============================================
# Persistence
# ============================================


class IActionRepository(ABC):
    """Lookup of actions joined to their integration."""

    @abstractmethod
    async def get_with_integration(self, action_id: str) -> Optional[Action]:
        """Return the action with `integration` populated, or None."""
        pass


class ISecretStore(ABC):
    """Lookup of encrypted secrets by name."""

    @abstractmethod
    async def get_by_name(self, name: str) -> Optional[Secret]:
        pass


class IAgentRepository(ABC):
    """Agent records and their enabled action bindings."""

    @abstractmethod
    async def get(self, agent_id: str) -> Optional[Agent]:
        pass

    @abstractmethod
    async def list_enabled_actions(self, agent_id: str) -> list[Action]:
        """Return actions bound to the agent with enabled=true, joined to integrations."""
        pass


class IKnowledgeBaseRepository(ABC):
    """Knowledge-base rows and their chunk rows."""

    @abstractmethod
    async def get(self, kb_id: str) -> Optional[KnowledgeBase]:
        pass

    @abstractmethod
    async def claim_for_processing(self, kb_id: str) -> bool:
        """Atomically move the KB to `processing`.

        Returns False when another build already holds it.
        """
        pass

    @abstractmethod
    async def mark_indexed(
        self,
        kb_id: str,
        chunk_count: int,
        embedding_provider: Optional[str] = None,
        embedding_model: Optional[str] = None,
    ) -> None:
        pass

    @abstractmethod
    async def mark_failed(self, kb_id: str) -> None:
        pass

    @abstractmethod
    async def replace_chunks(self, kb_id: str, chunks: list[VectorChunk]) -> None:
        """Delete the KB's existing chunks and insert the given ones."""
        pass

    @abstractmethod
    async def get_chunks_by_vector_ids(self, vector_ids: list[str]) -> list[VectorChunk]:
        pass

    @abstractmethod
    async def list_vector_ids(self, kb_id: str) -> list[str]:
        pass

    @abstractmethod
    async def delete(self, kb_id: str) -> None:
        pass


# ============================================
# Capabilities
# ============================================


class IEncryptionService(ABC):
    """Opaque field-level encryption capability."""

    @abstractmethod
    def encrypt(self, plaintext: str) -> str:
        pass

    @abstractmethod
    def decrypt(self, ciphertext: str) -> str:
        pass

    @abstractmethod
    def mask(self, secret: str) -> str:
        pass


class IHttpTransport(ABC):
    """Sends one HTTP request.

    Implementations raise APIError/ServerError for status >= 400 and
    NetworkError subclasses for connection failures and timeouts.
    """

    @abstractmethod
    async def send(self, request: HttpRequest) -> HttpResponse:
        pass


# ============================================
# LLM / Embeddings / Vector Index
# ============================================


class ILLMProvider(ABC):
    """Interface for chat-completion vendors.

    Implementations differ only in wire shape; all of them render the
    tool catalog into the system instruction and parse tool calls the
    same way.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def chat(
        self,
        model: str,
        messages: list[Message],
        tools: list[Action],
        api_key: str,
    ) -> LLMResponse:
        """Issue one completion.

        Args:
            model: Vendor model identifier
            messages: Conversation, optionally led by a system message
            tools: Tool catalog to advertise (may be empty)
            api_key: Decrypted vendor API key

        Returns:
            LLMResponse with content, parsed tool call and usage
        """
        pass


class IEmbeddingProvider(ABC):
    """Interface for embedding vendors."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @property
    @abstractmethod
    def default_model(self) -> str:
        pass

    @abstractmethod
    async def generate_embeddings(
        self, text: str, api_key: str, model: Optional[str] = None
    ) -> EmbeddingResult:
        """Embed text. Never raises on vendor failure."""
        pass


class IVectorIndex(ABC):
    """Namespaced cosine-similarity index."""

    @abstractmethod
    async def upsert(self, items: list[VectorItem], namespace: str) -> None:
        pass

    @abstractmethod
    async def query(
        self, vector: list[float], top_k: int, namespace: str
    ) -> list[VectorMatch]:
        pass

    @abstractmethod
    async def delete_by_ids(self, ids: list[str], namespace: str) -> None:
        pass

    @abstractmethod
    async def delete_namespace(self, namespace: str) -> None:
        pass
