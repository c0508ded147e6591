"""
Database Configuration
======================

Centralized PostgreSQL connection configuration for the API and the CLI.
Every pooled connection registers the pgvector codec so post embeddings can
be written as arrays.
"""
from dataclasses import dataclass
from typing import Optional

from .settings import Settings, get_settings


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""
    dsn: str
    min_size: int = 2
    max_size: int = 10

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        min_size: int = 2,
        max_size: int = 10
    ) -> 'PostgresConfig':
        """
        Create config from application settings.

        DATABASE_URL wins; otherwise it was assembled from POSTGRES_* parts.
        """
        settings = settings or get_settings()
        if not settings.database_url:
            raise ValueError("DATABASE_URL or POSTGRES_HOST environment variable is required")

        return cls(dsn=settings.database_url, min_size=min_size, max_size=max_size)

    def to_asyncpg_kwargs(self) -> dict:
        """Convert to asyncpg.create_pool kwargs."""
        return {
            'dsn': self.dsn,
            'min_size': self.min_size,
            'max_size': self.max_size,
        }


def get_postgres_config(min_size: int = 2, max_size: int = 10) -> PostgresConfig:
    """Get PostgreSQL configuration from settings."""
    return PostgresConfig.from_settings(min_size=min_size, max_size=max_size)


async def _init_connection(conn):
    from pgvector.asyncpg import register_vector
    await register_vector(conn)


async def create_postgres_pool(min_size: int = 2, max_size: int = 10):
    """
    Create PostgreSQL connection pool from settings.

    The vector extension must exist before the pool registers its codec,
    so it is created over a throwaway connection first.
    """
    import asyncpg
    config = get_postgres_config(min_size=min_size, max_size=max_size)
    conn = await asyncpg.connect(config.dsn)
    try:
        await conn.execute("CREATE EXTENSION IF NOT EXISTS vector")
    finally:
        await conn.close()

    return await asyncpg.create_pool(init=_init_connection, **config.to_asyncpg_kwargs())
