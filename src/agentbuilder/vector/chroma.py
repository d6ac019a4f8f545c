"""ChromaDB vector index.

Each namespace is its own Chroma collection using cosine distance, so
agents never see each other's vectors. The chromadb client is synchronous;
calls run in a worker thread to keep the event loop free.

Requirements:
    - chromadb >= 0.6.0
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import chromadb
from chromadb.errors import NotFoundError as ChromaNotFoundError

from ..domain.entities import VectorItem, VectorMatch
from ..domain.ports import IVectorIndex

logger = logging.getLogger(__name__)


def _prepare_metadata(meta: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Chroma only stores str/int/float/bool; other values are JSON-encoded."""
    if not meta:
        return {}

    prepared = {}
    for key, value in meta.items():
        if isinstance(value, (str, int, float, bool)):
            prepared[key] = value
        elif value is None:
            prepared[key] = ""
        else:
            prepared[f"{key}_json"] = json.dumps(value, ensure_ascii=False)
    return prepared


def _restore_metadata(meta: Optional[dict[str, Any]]) -> dict[str, Any]:
    if not meta:
        return {}

    restored = {}
    for key, value in meta.items():
        if key.endswith("_json"):
            try:
                restored[key[:-5]] = json.loads(value)
            except (json.JSONDecodeError, TypeError):
                restored[key[:-5]] = value
        else:
            restored[key] = value
    return restored


class ChromaVectorIndex(IVectorIndex):
    """IVectorIndex backed by a Chroma server (or any chromadb client).

    Usage:
        index = ChromaVectorIndex.connect(host="localhost", port=8000)
        await index.upsert(items, "agent-123")
        matches = await index.query(vector, 5, "agent-123")
    """

    def __init__(self, client: Any):
        self._client = client

    @classmethod
    def connect(cls, host: str, port: int = 8000) -> "ChromaVectorIndex":
        logger.info(f"Connecting to Chroma at {host}:{port}")
        return cls(chromadb.HttpClient(host=host, port=port))

    def _collection(self, namespace: str):
        return self._client.get_or_create_collection(
            name=namespace,
            metadata={"hnsw:space": "cosine"},
        )

    def _upsert(self, items: list[VectorItem], namespace: str) -> None:
        self._collection(namespace).upsert(
            ids=[item.id for item in items],
            embeddings=[item.values for item in items],
            metadatas=[_prepare_metadata(item.metadata) or None for item in items],
        )

    def _query(self, vector: list[float], top_k: int, namespace: str) -> list[VectorMatch]:
        collection = self._collection(namespace)
        count = collection.count()
        if count == 0 or top_k <= 0:
            return []

        results = collection.query(
            query_embeddings=[vector],
            n_results=min(top_k, count),
            include=["metadatas", "distances"],
        )

        if not results["ids"] or not results["ids"][0]:
            return []

        metadatas = results.get("metadatas") or [[]]
        distances = results.get("distances") or [[]]

        matches = []
        for i, vector_id in enumerate(results["ids"][0]):
            meta = metadatas[0][i] if i < len(metadatas[0]) else {}
            distance = distances[0][i] if i < len(distances[0]) else 1.0
            # Cosine distance -> similarity
            matches.append(
                VectorMatch(
                    id=vector_id,
                    score=1.0 - float(distance),
                    metadata=_restore_metadata(meta),
                )
            )
        return matches

    def _delete_by_ids(self, ids: list[str], namespace: str) -> None:
        self._collection(namespace).delete(ids=ids)

    def _delete_namespace(self, namespace: str) -> None:
        try:
            self._client.delete_collection(name=namespace)
        except (ValueError, ChromaNotFoundError):
            logger.debug(f"Chroma collection {namespace} does not exist")

    async def upsert(self, items: list[VectorItem], namespace: str) -> None:
        if not items:
            return
        await asyncio.to_thread(self._upsert, items, namespace)
        logger.debug(f"Upserted {len(items)} vectors into Chroma ({namespace})")

    async def query(
        self, vector: list[float], top_k: int, namespace: str
    ) -> list[VectorMatch]:
        return await asyncio.to_thread(self._query, vector, top_k, namespace)

    async def delete_by_ids(self, ids: list[str], namespace: str) -> None:
        if not ids:
            return
        await asyncio.to_thread(self._delete_by_ids, ids, namespace)
        logger.info(f"Deleted {len(ids)} vectors from Chroma ({namespace})")

    async def delete_namespace(self, namespace: str) -> None:
        await asyncio.to_thread(self._delete_namespace, namespace)
        logger.info(f"Deleted Chroma collection {namespace}")
