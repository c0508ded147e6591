"""
Post Repository - PostgreSQL storage for Moltbook posts

Storage: PostgreSQL (posts table; embedding is a pgvector column)

Connections come from a pool that registered the pgvector codec, so
embeddings are passed as numpy arrays.
"""
import logging
from typing import List, Tuple

import asyncpg
import numpy as np

from moltspace.models.domain.post import Post

logger = logging.getLogger(__name__)

EMBEDDING_DIMENSIONS = 1536


class PostRepository:
    """
    Repository for Post domain model

    Re-ingestion never clears a known community or author: a NULL in the
    incoming row keeps the stored reference.
    """

    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    async def upsert(self, post: Post) -> Tuple[str, bool]:
        """
        Insert post or overwrite its mutable fields.

        The embedding column is left untouched; see store_embedding().

        Returns:
            (internal id, True if the row was inserted)
        """
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow("""
                INSERT INTO posts (
                    id, moltbook_id, title, content, author_id, submolt_id,
                    upvotes, downvotes, comment_count, created_at
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                ON CONFLICT (moltbook_id) DO UPDATE SET
                    title = EXCLUDED.title,
                    content = EXCLUDED.content,
                    author_id = COALESCE(EXCLUDED.author_id, posts.author_id),
                    submolt_id = COALESCE(EXCLUDED.submolt_id, posts.submolt_id),
                    upvotes = EXCLUDED.upvotes,
                    downvotes = EXCLUDED.downvotes,
                    comment_count = EXCLUDED.comment_count,
                    created_at = EXCLUDED.created_at
                RETURNING id, (xmax = 0) AS inserted
            """,
                post.id,
                post.moltbook_id,
                post.title,
                post.content,
                post.author_id,
                post.submolt_id,
                post.upvotes,
                post.downvotes,
                post.comment_count,
                post.created_at
            )

            post.id = row['id']
            return row['id'], row['inserted']

    async def store_embedding(self, post_id: str, embedding: List[float]) -> None:
        """
        Store post embedding for similarity search / topic clustering.

        Args:
            post_id: Internal post id
            embedding: 1536-dim vector

        Raises:
            ValueError: If the vector has the wrong dimension
        """
        vector = np.asarray(embedding, dtype=np.float32)
        if vector.shape != (EMBEDDING_DIMENSIONS,):
            raise ValueError(
                f"Expected {EMBEDDING_DIMENSIONS}-dim embedding, got shape {vector.shape}"
            )

        async with self.db_pool.acquire() as conn:
            await conn.execute("""
                UPDATE posts
                SET embedding = $2
                WHERE id = $1
            """, post_id, vector)

        logger.debug(f"Stored embedding for post {post_id}")
