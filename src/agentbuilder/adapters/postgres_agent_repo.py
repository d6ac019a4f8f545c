"""PostgreSQL repository adapter for agents and their action bindings."""

import logging
from typing import TYPE_CHECKING, Optional

from ..domain.entities import Action, Agent
from ..domain.ports import IAgentRepository
from .postgres_action_repo import ACTION_WITH_INTEGRATION_COLUMNS, action_from_row

if TYPE_CHECKING:
    import asyncpg

logger = logging.getLogger(__name__)


class PostgresAgentRepository(IAgentRepository):
    """PostgreSQL implementation of IAgentRepository."""

    def __init__(self, pool: "asyncpg.Pool"):
        self.pool = pool

    async def get(self, agent_id: str) -> Optional[Agent]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT id, name, "systemPrompt", "llmProvider", "llmModel",
                       "apiKeyEncrypted", "createdAt"
                FROM agents
                WHERE id = $1
                """,
                agent_id,
            )

        if row is None:
            return None
        return Agent(
            id=row["id"],
            name=row["name"],
            system_prompt=row["systemPrompt"],
            llm_provider=row["llmProvider"],
            llm_model=row["llmModel"],
            api_key_encrypted=row["apiKeyEncrypted"],
            created_at=row["createdAt"],
        )

    async def list_enabled_actions(self, agent_id: str) -> list[Action]:
        """The agent's tool catalog: enabled bindings joined to integrations."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {ACTION_WITH_INTEGRATION_COLUMNS}
                FROM agent_actions aa
                JOIN actions a ON a.id = aa."actionId"
                JOIN integrations i ON i.id = a."integrationId"
                WHERE aa."agentId" = $1 AND aa.enabled = true
                ORDER BY a.name
                """,
                agent_id,
            )

        return [action_from_row(row) for row in rows]
