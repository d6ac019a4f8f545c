"""Knowledge-base ingestion and retrieval."""

from .processor import DocumentProcessor
from .service import KnowledgeBaseService

__all__ = ["DocumentProcessor", "KnowledgeBaseService"]
