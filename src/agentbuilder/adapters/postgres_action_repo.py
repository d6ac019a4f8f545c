"""PostgreSQL repository adapter for actions and their integrations."""

import logging
from typing import TYPE_CHECKING, Any, Optional

from ..database import load_json
from ..domain.entities import Action, ActionVariable, AuthEntry, Integration
from ..domain.ports import IActionRepository

if TYPE_CHECKING:
    import asyncpg

logger = logging.getLogger(__name__)

# Action columns plus the joined integration columns, prefixed i_
ACTION_WITH_INTEGRATION_COLUMNS = """
    a.id, a.name, a."descriptionForLlm", a."integrationId", a."executionMode",
    a.variables, a."bodyTemplate", a."urlTemplate", a."queryTemplate",
    i.id AS i_id, i.name AS i_name, i.description AS i_description,
    i.method AS i_method, i.url AS i_url, i."authEnabled" AS i_auth_enabled,
    i."authConfig" AS i_auth_config, i."defaultHeaders" AS i_default_headers,
    i."defaultParams" AS i_default_params
"""


def integration_from_row(row: Any) -> Integration:
    return Integration(
        id=row["i_id"],
        name=row["i_name"],
        description=row["i_description"],
        method=row["i_method"],
        url=row["i_url"],
        auth_enabled=bool(row["i_auth_enabled"]),
        auth_config=[AuthEntry.from_dict(e) for e in load_json(row["i_auth_config"], []) or []],
        default_headers=load_json(row["i_default_headers"], {}) or {},
        default_params=load_json(row["i_default_params"], {}) or {},
    )


def action_from_row(row: Any) -> Action:
    """Map a row selected with ACTION_WITH_INTEGRATION_COLUMNS to an Action."""
    return Action(
        id=row["id"],
        name=row["name"],
        description=row["descriptionForLlm"],
        integration_id=row["integrationId"],
        execution_mode=row["executionMode"],
        variables=[ActionVariable.from_dict(v) for v in load_json(row["variables"], []) or []],
        body_template=row["bodyTemplate"],
        url_template=row["urlTemplate"],
        query_template=load_json(row["queryTemplate"]),
        integration=integration_from_row(row),
    )


class PostgresActionRepository(IActionRepository):
    """PostgreSQL implementation of IActionRepository."""

    def __init__(self, pool: "asyncpg.Pool"):
        self.pool = pool

    async def get_with_integration(self, action_id: str) -> Optional[Action]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {ACTION_WITH_INTEGRATION_COLUMNS}
                FROM actions a
                JOIN integrations i ON i.id = a."integrationId"
                WHERE a.id = $1
                """,
                action_id,
            )

        if row is None:
            return None
        return action_from_row(row)
