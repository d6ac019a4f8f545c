"""PostgreSQL brute-force vector index.

Embeddings live on the vector_chunks rows (jsonb) written during ingestion.
A query loads every embedded chunk belonging to the namespace's agent and
ranks them in Python; cost is linear in the number of chunks and no index
structure is maintained.
"""

import logging
from typing import TYPE_CHECKING

from ..database import load_json
from ..domain.entities import VectorItem, VectorMatch, agent_id_from_namespace
from ..domain.ports import IVectorIndex
from .similarity import rank_by_cosine

if TYPE_CHECKING:
    import asyncpg

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 500


class PostgresVectorIndex(IVectorIndex):
    """IVectorIndex over the vector_chunks table (exact scan).

    Namespace ``agent-<id>`` scopes every statement to chunks whose
    knowledge base belongs to that agent.
    """

    def __init__(self, pool: "asyncpg.Pool"):
        self.pool = pool

    async def upsert(self, items: list[VectorItem], namespace: str) -> None:
        """Write embeddings onto the agent's existing chunk rows by vectorId.

        Re-upserting the same id overwrites the stored embedding.
        """
        if not items:
            return

        agent_id = agent_id_from_namespace(namespace)
        records = [(item.id, item.values, agent_id) for item in items]

        async with self.pool.acquire() as conn:
            await conn.executemany(
                """
                UPDATE vector_chunks vc
                SET embedding = $2
                FROM knowledge_bases kb
                WHERE vc."knowledgeBaseId" = kb.id
                  AND vc."vectorId" = $1
                  AND kb."agentId" = $3
                """,
                records,
            )

        logger.debug(f"Stored {len(records)} vectors in PostgreSQL ({namespace})")

    async def query(
        self, vector: list[float], top_k: int, namespace: str
    ) -> list[VectorMatch]:
        agent_id = agent_id_from_namespace(namespace)

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT vc."vectorId", vc.embedding, vc.text, vc.metadata,
                       vc."chunkIndex", kb."fileName"
                FROM vector_chunks vc
                JOIN knowledge_bases kb ON kb.id = vc."knowledgeBaseId"
                WHERE kb."agentId" = $1
                  AND vc.embedding IS NOT NULL
                ORDER BY vc."createdAt", vc."knowledgeBaseId", vc."chunkIndex"
                """,
                agent_id,
            )

        if not rows:
            return []

        candidates = []
        for row in rows:
            embedding = load_json(row["embedding"])
            if not embedding:
                continue
            metadata = {
                "text": row["text"][:PREVIEW_CHARS],
                "fileName": row["fileName"],
                "chunkIndex": row["chunkIndex"],
                **(load_json(row["metadata"], {}) or {}),
            }
            candidates.append(((row["vectorId"], metadata), embedding))

        ranked = rank_by_cosine(vector, candidates, top_k)

        logger.info(
            f"Found {len(ranked)} matches in PostgreSQL (from {len(rows)} total chunks)"
        )
        return [
            VectorMatch(id=vector_id, score=score, metadata=metadata)
            for (vector_id, metadata), score in ranked
        ]

    async def delete_by_ids(self, ids: list[str], namespace: str) -> None:
        if not ids:
            return

        agent_id = agent_id_from_namespace(namespace)
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                DELETE FROM vector_chunks vc
                USING knowledge_bases kb
                WHERE vc."knowledgeBaseId" = kb.id
                  AND kb."agentId" = $2
                  AND vc."vectorId" = ANY($1)
                """,
                ids,
                agent_id,
            )
        logger.info(f"Deleted {len(ids)} vectors from PostgreSQL ({namespace})")

    async def delete_namespace(self, namespace: str) -> None:
        agent_id = agent_id_from_namespace(namespace)
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                DELETE FROM vector_chunks vc
                USING knowledge_bases kb
                WHERE vc."knowledgeBaseId" = kb.id
                  AND kb."agentId" = $1
                """,
                agent_id,
            )
        logger.info(f"Deleted all vectors for {namespace} from PostgreSQL")
