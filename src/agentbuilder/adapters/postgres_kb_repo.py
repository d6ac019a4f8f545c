"""PostgreSQL repository adapter for knowledge bases and their chunks.

Status transitions:
    uploaded/indexed/failed -> processing   (claim_for_processing, atomic)
    processing -> indexed                   (mark_indexed)
    processing -> failed                    (mark_failed)
"""

import logging
from typing import TYPE_CHECKING, Any, Optional

from ..database import database_transaction, load_json
from ..domain.entities import KnowledgeBase, KnowledgeBaseStatus, VectorChunk
from ..domain.ports import IKnowledgeBaseRepository

if TYPE_CHECKING:
    import asyncpg

logger = logging.getLogger(__name__)


def _kb_from_row(row: Any) -> KnowledgeBase:
    return KnowledgeBase(
        id=row["id"],
        agent_id=row["agentId"],
        file_name=row["fileName"],
        file_type=row["fileType"],
        file_path=row["filePath"],
        file_size=row["fileSize"],
        status=KnowledgeBaseStatus(row["status"]),
        chunk_count=row["chunkCount"],
        embedding_provider=row["embeddingProvider"],
        embedding_model=row["embeddingModel"],
    )


def _chunk_from_row(row: Any) -> VectorChunk:
    return VectorChunk(
        id=row["id"],
        knowledge_base_id=row["knowledgeBaseId"],
        chunk_index=row["chunkIndex"],
        text=row["text"],
        vector_id=row["vectorId"],
        metadata=load_json(row["metadata"], {}) or {},
    )


class PostgresKnowledgeBaseRepository(IKnowledgeBaseRepository):
    """PostgreSQL implementation of IKnowledgeBaseRepository."""

    def __init__(self, pool: "asyncpg.Pool"):
        self.pool = pool

    async def get(self, kb_id: str) -> Optional[KnowledgeBase]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT id, "agentId", "fileName", "fileType", "filePath", "fileSize",
                       status, "chunkCount", "embeddingProvider", "embeddingModel"
                FROM knowledge_bases
                WHERE id = $1
                """,
                kb_id,
            )
        return _kb_from_row(row) if row else None

    async def claim_for_processing(self, kb_id: str) -> bool:
        """Single conditional UPDATE; only one concurrent caller can win."""
        async with self.pool.acquire() as conn:
            claimed = await conn.fetchval(
                """
                UPDATE knowledge_bases
                SET status = $2, "updatedAt" = NOW()
                WHERE id = $1 AND status <> $2
                RETURNING id
                """,
                kb_id,
                KnowledgeBaseStatus.PROCESSING.value,
            )
        return claimed is not None

    async def mark_indexed(
        self,
        kb_id: str,
        chunk_count: int,
        embedding_provider: Optional[str] = None,
        embedding_model: Optional[str] = None,
    ) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                UPDATE knowledge_bases
                SET status = $2, "chunkCount" = $3, "embeddingProvider" = $4,
                    "embeddingModel" = $5, "updatedAt" = NOW()
                WHERE id = $1
                """,
                kb_id,
                KnowledgeBaseStatus.INDEXED.value,
                chunk_count,
                embedding_provider,
                embedding_model,
            )

    async def mark_failed(self, kb_id: str) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                UPDATE knowledge_bases
                SET status = $2, "updatedAt" = NOW()
                WHERE id = $1
                """,
                kb_id,
                KnowledgeBaseStatus.FAILED.value,
            )

    async def replace_chunks(self, kb_id: str, chunks: list[VectorChunk]) -> None:
        """Delete old chunk rows and insert the new ones in one transaction."""
        records = [
            (
                c.id,
                kb_id,
                c.chunk_index,
                c.text,
                c.vector_id,
                c.metadata,
                c.embedding,
            )
            for c in chunks
        ]

        async with database_transaction(self.pool) as conn:
            await conn.execute(
                'DELETE FROM vector_chunks WHERE "knowledgeBaseId" = $1',
                kb_id,
            )
            if records:
                await conn.executemany(
                    """
                    INSERT INTO vector_chunks (
                        id, "knowledgeBaseId", "chunkIndex", text, "vectorId",
                        metadata, embedding, "createdAt"
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7, NOW())
                    """,
                    records,
                )

        logger.info(f"Stored {len(records)} chunks for knowledge base {kb_id}")

    async def get_chunks_by_vector_ids(self, vector_ids: list[str]) -> list[VectorChunk]:
        if not vector_ids:
            return []

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, "knowledgeBaseId", "chunkIndex", text, "vectorId", metadata
                FROM vector_chunks
                WHERE "vectorId" = ANY($1)
                """,
                vector_ids,
            )
        return [_chunk_from_row(row) for row in rows]

    async def list_vector_ids(self, kb_id: str) -> list[str]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT "vectorId" FROM vector_chunks
                WHERE "knowledgeBaseId" = $1
                ORDER BY "chunkIndex"
                """,
                kb_id,
            )
        return [row["vectorId"] for row in rows]

    async def delete(self, kb_id: str) -> None:
        """Delete the knowledge base; its chunk rows cascade."""
        async with self.pool.acquire() as conn:
            await conn.execute("DELETE FROM knowledge_bases WHERE id = $1", kb_id)
