"""Vector index backend selection (done once, at startup)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..domain.ports import IVectorIndex
from ..exceptions import ConfigurationError
from .chroma import ChromaVectorIndex
from .postgres import PostgresVectorIndex

if TYPE_CHECKING:
    import asyncpg

    from ..config import Settings

logger = logging.getLogger(__name__)

BACKEND_POSTGRES = "postgres"
BACKEND_CHROMA = "chroma"


def create_vector_index(settings: "Settings", pool: "asyncpg.Pool") -> IVectorIndex:
    """Build the configured IVectorIndex.

    Raises:
        ConfigurationError: Unknown backend, or chroma without CHROMA_HOST
    """
    backend = settings.vector_backend

    if backend == BACKEND_CHROMA:
        if not settings.chroma_host:
            raise ConfigurationError(
                "VECTOR_BACKEND=chroma requires CHROMA_HOST",
                missing_keys=["CHROMA_HOST"],
            )
        return ChromaVectorIndex.connect(settings.chroma_host, settings.chroma_port)

    if backend == BACKEND_POSTGRES:
        logger.info("Using PostgreSQL for persistent vector storage")
        return PostgresVectorIndex(pool)

    raise ConfigurationError(f"Unsupported VECTOR_BACKEND: {backend}")
