"""
Submolt Repository - PostgreSQL storage for Moltbook communities

Storage: PostgreSQL (submolts table)
"""
from typing import Tuple

import asyncpg

from moltspace.models.domain.submolt import Submolt


class SubmoltRepository:
    """Repository for Submolt domain model"""

    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    async def upsert(self, submolt: Submolt) -> Tuple[str, bool]:
        """
        Insert submolt or overwrite its mutable fields.

        Returns:
            (internal id, True if the row was inserted)
        """
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow("""
                INSERT INTO submolts (
                    id, moltbook_id, name, display_name, description,
                    subscriber_count, created_at, last_activity_at
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                ON CONFLICT (moltbook_id) DO UPDATE SET
                    name = EXCLUDED.name,
                    display_name = EXCLUDED.display_name,
                    description = EXCLUDED.description,
                    subscriber_count = EXCLUDED.subscriber_count,
                    created_at = EXCLUDED.created_at,
                    last_activity_at = EXCLUDED.last_activity_at
                RETURNING id, (xmax = 0) AS inserted
            """,
                submolt.id,
                submolt.moltbook_id,
                submolt.name,
                submolt.display_name,
                submolt.description,
                submolt.subscriber_count,
                submolt.created_at,
                submolt.last_activity_at
            )

            submolt.id = row['id']
            return row['id'], row['inserted']
