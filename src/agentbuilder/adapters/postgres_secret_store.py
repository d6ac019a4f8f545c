"""PostgreSQL secret store. Secrets are read on every lookup, never cached."""

import logging
from typing import TYPE_CHECKING, Optional

from ..domain.entities import Secret
from ..domain.ports import ISecretStore

if TYPE_CHECKING:
    import asyncpg

logger = logging.getLogger(__name__)


class PostgresSecretStore(ISecretStore):
    def __init__(self, pool: "asyncpg.Pool"):
        self.pool = pool

    async def get_by_name(self, name: str) -> Optional[Secret]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT id, name, "encryptedValue", description
                FROM secrets
                WHERE name = $1
                """,
                name,
            )

        if row is None:
            return None
        return Secret(
            id=row["id"],
            name=row["name"],
            encrypted_value=row["encryptedValue"],
            description=row["description"],
        )
