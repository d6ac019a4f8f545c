"""PostgreSQL adapters implementing the domain ports."""

from .postgres_action_repo import PostgresActionRepository
from .postgres_agent_repo import PostgresAgentRepository
from .postgres_kb_repo import PostgresKnowledgeBaseRepository
from .postgres_secret_store import PostgresSecretStore

__all__ = [
    "PostgresActionRepository",
    "PostgresAgentRepository",
    "PostgresKnowledgeBaseRepository",
    "PostgresSecretStore",
]
