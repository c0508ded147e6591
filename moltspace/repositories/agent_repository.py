"""
Agent Repository - PostgreSQL storage for Moltbook agents

Storage: PostgreSQL (agents table)
"""
import logging
from typing import Tuple

import asyncpg

from moltspace.models.domain.agent import Agent
from moltspace.utils.id_generator import generate_id

logger = logging.getLogger(__name__)


class AgentRepository:
    """
    Repository for Agent domain model

    Agents are keyed by moltbook_id; counters are overwritten with the
    latest observed values on every upsert.
    """

    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    async def upsert(self, agent: Agent) -> Tuple[str, bool]:
        """
        Insert agent or overwrite its mutable fields.

        Args:
            agent: Agent model (id is used only when the row is new)

        Returns:
            (internal id, True if the row was inserted)
        """
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow("""
                INSERT INTO agents (
                    id, moltbook_id, name, description,
                    karma, follower_count, created_at, last_seen_at
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, NOW())
                ON CONFLICT (moltbook_id) DO UPDATE SET
                    name = EXCLUDED.name,
                    description = EXCLUDED.description,
                    karma = EXCLUDED.karma,
                    follower_count = EXCLUDED.follower_count,
                    created_at = EXCLUDED.created_at,
                    last_seen_at = NOW()
                RETURNING id, (xmax = 0) AS inserted
            """,
                agent.id,
                agent.moltbook_id,
                agent.name,
                agent.description,
                agent.karma,
                agent.follower_count,
                agent.created_at
            )

            agent.id = row['id']
            return row['id'], row['inserted']

    async def ensure(self, moltbook_id: str, name: str) -> str:
        """
        Make sure an agent row exists for a referenced author.

        Used for post/comment authors that were not in the pre-fetched
        agent batch. Only name and last_seen_at change on conflict.

        Returns:
            Internal agent id
        """
        async with self.db_pool.acquire() as conn:
            agent_id = await conn.fetchval("""
                INSERT INTO agents (id, moltbook_id, name, created_at, last_seen_at)
                VALUES ($1, $2, $3, NOW(), NOW())
                ON CONFLICT (moltbook_id) DO UPDATE SET
                    name = EXCLUDED.name,
                    last_seen_at = NOW()
                RETURNING id
            """, generate_id('agent'), moltbook_id, name)

            logger.debug(f"Ensured agent {moltbook_id} -> {agent_id}")
            return agent_id
