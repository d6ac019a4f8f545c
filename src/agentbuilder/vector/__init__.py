"""Namespaced vector indexes: PostgreSQL exact scan and ChromaDB."""

from .chroma import ChromaVectorIndex
from .factory import BACKEND_CHROMA, BACKEND_POSTGRES, create_vector_index
from .postgres import PostgresVectorIndex
from .similarity import cosine_similarity, rank_by_cosine

__all__ = [
    "BACKEND_CHROMA",
    "BACKEND_POSTGRES",
    "ChromaVectorIndex",
    "PostgresVectorIndex",
    "cosine_similarity",
    "create_vector_index",
    "rank_by_cosine",
]
