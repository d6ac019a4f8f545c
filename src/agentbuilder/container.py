"""Composition root.

Every shared client (database pool, HTTP session, vendor registries, the
vector index) is created here once and handed to the components that use
it, so tests can substitute any of them.

Example:
    container = await build_container(Settings.from_env())
    try:
        result = await container.orchestrator.chat(agent_id, messages)
    finally:
        await container.close()
"""

import logging
from dataclasses import dataclass
from typing import Any

from .actions.executor import ActionExecutor
from .actions.templates import TemplateResolver
from .actions.transport import AiohttpTransport
from .adapters import (
    PostgresActionRepository,
    PostgresAgentRepository,
    PostgresKnowledgeBaseRepository,
    PostgresSecretStore,
)
from .config import Settings
from .database import close_pool, create_pool
from .domain.ports import IVectorIndex
from .embeddings.factory import EmbeddingProviderRegistry
from .knowledge.processor import DocumentProcessor
from .knowledge.service import KnowledgeBaseService
from .llm.factory import LLMProviderRegistry
from .orchestrator.chat import ChatOrchestrator
from .security.encryption import EncryptionService
from .vector.factory import create_vector_index

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    pool: Any
    transport: AiohttpTransport
    encryption: EncryptionService
    vector_index: IVectorIndex
    executor: ActionExecutor
    orchestrator: ChatOrchestrator
    knowledge: KnowledgeBaseService

    async def close(self) -> None:
        await self.transport.close()
        await close_pool(self.pool)


async def build_container(settings: Settings) -> ServiceContainer:
    """Wire every component from settings.

    Raises:
        ConfigurationError: Settings are incomplete
        ConnectionPoolError: The database is unreachable
    """
    settings.validate()

    encryption = EncryptionService(settings.encryption_key)
    pool = await create_pool(settings.database_url)
    try:
        return _wire(settings, pool, encryption)
    except Exception:
        logger.error("Failed to wire services, closing database pool")
        await close_pool(pool)
        raise


def _wire(settings: Settings, pool: Any, encryption: EncryptionService) -> ServiceContainer:
    transport = AiohttpTransport()

    action_repository = PostgresActionRepository(pool)
    agent_repository = PostgresAgentRepository(pool)
    kb_repository = PostgresKnowledgeBaseRepository(pool)
    secret_store = PostgresSecretStore(pool)

    vector_index = create_vector_index(settings, pool)
    logger.info(f"Vector backend: {settings.vector_backend}")

    executor = ActionExecutor(
        action_repository=action_repository,
        template_resolver=TemplateResolver(secret_store, encryption),
        transport=transport,
        encryption=encryption,
        timeout=settings.action_timeout_seconds,
        max_retries=settings.action_max_retries,
    )

    orchestrator = ChatOrchestrator(
        agent_repository=agent_repository,
        llm_registry=LLMProviderRegistry.default(),
        executor=executor,
        encryption=encryption,
    )

    knowledge = KnowledgeBaseService(
        kb_repository=kb_repository,
        agent_repository=agent_repository,
        embeddings=EmbeddingProviderRegistry.default(),
        vector_index=vector_index,
        encryption=encryption,
        processor=DocumentProcessor(settings.kb_chunk_size, settings.kb_chunk_overlap),
        default_api_key=settings.default_openai_api_key,
    )

    return ServiceContainer(
        settings=settings,
        pool=pool,
        transport=transport,
        encryption=encryption,
        vector_index=vector_index,
        executor=executor,
        orchestrator=orchestrator,
        knowledge=knowledge,
    )
