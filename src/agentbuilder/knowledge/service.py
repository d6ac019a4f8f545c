"""
Knowledge-base ingestion and retrieval.

build() runs one document through extract -> chunk -> embed -> store ->
index and moves the knowledge base through
uploaded -> processing -> indexed|failed. The processing claim is a
single conditional UPDATE, so two concurrent builds of the same
knowledge base cannot both run; the loser gets IngestionInProgressError.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

from ..domain.entities import (
    Agent,
    SearchResult,
    VectorChunk,
    VectorItem,
    namespace_for_agent,
)
from ..domain.ports import (
    IAgentRepository,
    IEncryptionService,
    IKnowledgeBaseRepository,
    IVectorIndex,
)
from ..embeddings.factory import EmbeddingProviderRegistry
from ..exceptions import (
    AgentNotFoundError,
    ConfigurationError,
    IngestionInProgressError,
    KnowledgeBaseNotFoundError,
)
from .processor import DocumentProcessor

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 500


class KnowledgeBaseService:
    """Builds, searches and deletes per-agent knowledge bases.

    Args:
        kb_repository: Knowledge-base and chunk rows
        agent_repository: Agent lookup (embedding vendor and API key)
        embeddings: Embedding vendor registry
        vector_index: Namespaced index (one namespace per agent)
        encryption: Decrypts the agent's API key
        processor: Text extraction and chunking
        default_api_key: Used when the agent's key cannot be decrypted
    """

    def __init__(
        self,
        kb_repository: IKnowledgeBaseRepository,
        agent_repository: IAgentRepository,
        embeddings: EmbeddingProviderRegistry,
        vector_index: IVectorIndex,
        encryption: IEncryptionService,
        processor: Optional[DocumentProcessor] = None,
        default_api_key: Optional[str] = None,
    ):
        self.kb_repository = kb_repository
        self.agent_repository = agent_repository
        self.embeddings = embeddings
        self.vector_index = vector_index
        self.encryption = encryption
        self.processor = processor or DocumentProcessor()
        self.default_api_key = default_api_key

    def _resolve_api_key(self, agent: Agent) -> str:
        try:
            api_key = self.encryption.decrypt(agent.api_key_encrypted)
        except Exception as e:
            logger.warning(f"Failed to decrypt API key for agent {agent.id}, using default: {e}")
            api_key = self.default_api_key or ""

        if not api_key:
            raise ConfigurationError(
                "No API key available for embeddings. Please configure an API key for the agent.",
                missing_keys=["DEFAULT_OPENAI_API_KEY"],
            )
        return api_key

    async def _get_agent(self, agent_id: str) -> Agent:
        agent = await self.agent_repository.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        return agent

    async def build(self, kb_id: str) -> int:
        """Ingest a knowledge base and return its chunk count.

        Raises:
            KnowledgeBaseNotFoundError: Unknown kb_id
            IngestionInProgressError: Another build holds the knowledge base
            Exception: Any ingestion failure, after status is set to failed
        """
        kb = await self.kb_repository.get(kb_id)
        if kb is None:
            raise KnowledgeBaseNotFoundError(kb_id)

        if not await self.kb_repository.claim_for_processing(kb_id):
            raise IngestionInProgressError(kb_id)

        logger.info(f"Processing knowledge base {kb_id} ({kb.file_name})")

        try:
            agent = await self._get_agent(kb.agent_id)

            text = await asyncio.to_thread(
                self.processor.extract_text, kb.file_path, kb.file_type
            )
            chunks = self.processor.chunk_text(text)

            api_key = self._resolve_api_key(agent)
            provider = self.embeddings.for_llm_provider(agent.llm_provider)
            model = provider.default_model
            logger.info(
                f"Using {provider.provider_name} embeddings with model {model} "
                f"for agent {agent.name}"
            )

            rows: list[VectorChunk] = []
            items: list[VectorItem] = []
            for i, chunk in enumerate(chunks):
                embedding = await provider.generate_embeddings(chunk, api_key, model)
                vector_id = f"{kb_id}-chunk-{i}"

                rows.append(
                    VectorChunk(
                        knowledge_base_id=kb_id,
                        chunk_index=i,
                        text=chunk,
                        vector_id=vector_id,
                        embedding=embedding.vector,
                        metadata={
                            "fileName": kb.file_name,
                            "chunkIndex": i,
                            "totalChunks": len(chunks),
                        },
                    )
                )
                items.append(
                    VectorItem(
                        id=vector_id,
                        values=embedding.vector,
                        metadata={
                            "kbId": kb_id,
                            "fileName": kb.file_name,
                            "chunkIndex": i,
                            "text": chunk[:PREVIEW_CHARS],
                        },
                    )
                )

            await self.kb_repository.replace_chunks(kb_id, rows)
            await self.vector_index.upsert(items, namespace_for_agent(kb.agent_id))

            await self.kb_repository.mark_indexed(
                kb_id,
                len(chunks),
                embedding_provider=provider.provider_name,
                embedding_model=model,
            )

        except Exception as e:
            logger.error(f"Error processing knowledge base {kb_id}: {e}")
            await self.kb_repository.mark_failed(kb_id)
            raise

        logger.info(f"Knowledge base {kb_id} indexed ({len(chunks)} chunks)")
        return len(chunks)

    async def search(self, agent_id: str, query: str, top_k: int = 5) -> list[SearchResult]:
        """Rank the agent's chunks against query and return their full text.

        Matches whose chunk row no longer exists are skipped.
        """
        agent = await self._get_agent(agent_id)
        api_key = self._resolve_api_key(agent)
        provider = self.embeddings.for_llm_provider(agent.llm_provider)

        embedding = await provider.generate_embeddings(query, api_key, provider.default_model)
        matches = await self.vector_index.query(
            embedding.vector, top_k, namespace_for_agent(agent_id)
        )

        chunks = await self.kb_repository.get_chunks_by_vector_ids([m.id for m in matches])
        by_vector_id = {chunk.vector_id: chunk for chunk in chunks}

        results = []
        for match in matches:
            chunk = by_vector_id.get(match.id)
            if chunk is None:
                continue
            results.append(SearchResult(text=chunk.text, score=match.score, metadata=chunk.metadata))
        return results

    async def delete(self, kb_id: str) -> None:
        """Remove a knowledge base: index vectors, uploaded file, then the row."""
        kb = await self.kb_repository.get(kb_id)
        if kb is None:
            raise KnowledgeBaseNotFoundError(kb_id)

        vector_ids = await self.kb_repository.list_vector_ids(kb_id)
        if vector_ids:
            await self.vector_index.delete_by_ids(vector_ids, namespace_for_agent(kb.agent_id))

        try:
            os.remove(kb.file_path)
        except OSError as e:
            logger.warning(f"Error deleting file {kb.file_path}: {e}")

        await self.kb_repository.delete(kb_id)
        logger.info(f"Deleted knowledge base {kb_id}")
