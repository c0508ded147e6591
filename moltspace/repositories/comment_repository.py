"""
Comment Repository - PostgreSQL storage for comments

Storage: PostgreSQL (comments table)
"""
import logging
from typing import Tuple

import asyncpg

from moltspace.models.domain.comment import Comment

logger = logging.getLogger(__name__)


class CommentRepository:
    """
    Repository for Comment domain model

    Handles threaded comments on posts. Thread structure (post_id,
    parent_id, author_id) is fixed at insert; re-ingestion only refreshes
    content and votes.
    """

    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    async def upsert(self, comment: Comment) -> Tuple[str, bool]:
        """
        Insert comment or refresh content/votes of an existing one.

        Args:
            comment: Comment model with resolved post/author/parent ids

        Returns:
            (internal id, True if the row was inserted)
        """
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow("""
                INSERT INTO comments (
                    id, moltbook_id, post_id, parent_id, content,
                    author_id, upvotes, downvotes, created_at
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                ON CONFLICT (moltbook_id) DO UPDATE SET
                    content = EXCLUDED.content,
                    upvotes = EXCLUDED.upvotes,
                    downvotes = EXCLUDED.downvotes,
                    created_at = EXCLUDED.created_at
                RETURNING id, (xmax = 0) AS inserted
            """,
                comment.id,
                comment.moltbook_id,
                comment.post_id,
                comment.parent_id,
                comment.content,
                comment.author_id,
                comment.upvotes,
                comment.downvotes,
                comment.created_at
            )

            comment.id = row['id']
            if row['inserted']:
                logger.debug(f"Created comment {comment.id} on post {comment.post_id}")
            return row['id'], row['inserted']
