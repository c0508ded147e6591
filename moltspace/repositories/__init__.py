"""
Repository Pattern - Storage abstraction layer

Repositories hide PostgreSQL details from the ingestion pipeline.
Consumers work with domain models, not asyncpg records.

Every write is a single INSERT ... ON CONFLICT (moltbook_id) DO UPDATE
statement, so concurrent identical upserts resolve to an update instead of
a uniqueness violation. Upserts return (internal_id, created).
"""
from pathlib import Path

import asyncpg

from moltspace.config import create_postgres_pool

from .agent_repository import AgentRepository
from .submolt_repository import SubmoltRepository
from .post_repository import PostRepository
from .comment_repository import CommentRepository

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

# Shared database connection pool (initialized on first use)
db_pool = None


async def get_db_pool() -> asyncpg.Pool:
    """Get or create shared database connection pool"""
    global db_pool
    if db_pool is None:
        db_pool = await create_postgres_pool(min_size=2, max_size=10)
    return db_pool


async def init_schema(pool: asyncpg.Pool) -> None:
    """Create tables and indexes if they don't exist"""
    async with pool.acquire() as conn:
        await conn.execute(SCHEMA_PATH.read_text(encoding="utf-8"))


__all__ = [
    'AgentRepository',
    'SubmoltRepository',
    'PostRepository',
    'CommentRepository',
    'db_pool',
    'get_db_pool',
    'init_schema',
]
