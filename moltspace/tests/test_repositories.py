"""
Tests for PostgreSQL repositories with a mocked asyncpg pool.

These check the SQL contract (single ON CONFLICT upsert keyed on
moltbook_id) and vector handling, not PostgreSQL itself.
"""
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from moltspace.models.domain import Agent, Comment, Post, Submolt
from moltspace.repositories import (
    AgentRepository,
    CommentRepository,
    PostRepository,
    SubmoltRepository,
    init_schema,
)

NOW = datetime(2026, 2, 1, 10, 0, tzinfo=timezone.utc)


def mock_pool():
    conn = AsyncMock()
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = conn
    pool.acquire.return_value.__aexit__.return_value = False
    return pool, conn


# =============================================================================
# Upserts
# =============================================================================

@pytest.mark.asyncio
async def test_agent_upsert_is_single_on_conflict_statement():
    pool, conn = mock_pool()
    conn.fetchrow.return_value = {'id': 'ag_existing', 'inserted': False}
    agent = Agent(moltbook_id="a1", name="molty", karma=5, created_at=NOW)

    agent_id, created = await AgentRepository(pool).upsert(agent)

    assert (agent_id, created) == ('ag_existing', False)
    assert agent.id == 'ag_existing'
    query = conn.fetchrow.await_args.args[0]
    assert "ON CONFLICT (moltbook_id) DO UPDATE" in query
    assert "last_seen_at = NOW()" in query
    assert "RETURNING id, (xmax = 0) AS inserted" in query
    assert conn.fetchrow.await_args.args[2] == "a1"
    conn.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_ensure_agent_touches_name_and_last_seen_only():
    pool, conn = mock_pool()
    conn.fetchval.return_value = 'ag_abc12345'

    agent_id = await AgentRepository(pool).ensure("a9", "newcomer")

    assert agent_id == 'ag_abc12345'
    query, new_id, moltbook_id, name = conn.fetchval.await_args.args
    assert "ON CONFLICT (moltbook_id) DO UPDATE" in query
    assert "karma" not in query.split("DO UPDATE")[1]
    assert new_id.startswith("ag_")
    assert (moltbook_id, name) == ("a9", "newcomer")


@pytest.mark.asyncio
async def test_submolt_upsert_reports_insert():
    pool, conn = mock_pool()
    conn.fetchrow.return_value = {'id': 'sm_00000001', 'inserted': True}
    submolt = Submolt(moltbook_id="s1", name="general", display_name="General")

    assert await SubmoltRepository(pool).upsert(submolt) == ('sm_00000001', True)
    assert "ON CONFLICT (moltbook_id)" in conn.fetchrow.await_args.args[0]


@pytest.mark.asyncio
async def test_post_upsert_keeps_known_references():
    pool, conn = mock_pool()
    conn.fetchrow.return_value = {'id': 'po_00000001', 'inserted': True}
    post = Post(moltbook_id="p1", title="t", content="c", author_id="ag_00000001")

    await PostRepository(pool).upsert(post)

    query = conn.fetchrow.await_args.args[0]
    assert "submolt_id = COALESCE(EXCLUDED.submolt_id, posts.submolt_id)" in query
    assert "embedding" not in query


@pytest.mark.asyncio
async def test_comment_upsert_does_not_move_thread():
    pool, conn = mock_pool()
    conn.fetchrow.return_value = {'id': 'cm_00000001', 'inserted': False}
    comment = Comment(
        moltbook_id="c1", post_id="po_00000001", author_id="ag_00000001",
        content="hi", parent_id="cm_00000009"
    )

    assert await CommentRepository(pool).upsert(comment) == ('cm_00000001', False)
    update_clause = conn.fetchrow.await_args.args[0].split("DO UPDATE SET")[1]
    assert "parent_id" not in update_clause
    assert "post_id" not in update_clause


# =============================================================================
# Embeddings
# =============================================================================

@pytest.mark.asyncio
async def test_store_embedding_passes_float32_vector():
    pool, conn = mock_pool()

    await PostRepository(pool).store_embedding("po_00000001", [0.5] * 1536)

    _, post_id, vector = conn.execute.await_args.args
    assert post_id == "po_00000001"
    assert vector.dtype.name == "float32"
    assert vector.shape == (1536,)


@pytest.mark.asyncio
async def test_store_embedding_rejects_wrong_dimension():
    pool, conn = mock_pool()

    with pytest.raises(ValueError):
        await PostRepository(pool).store_embedding("po_00000001", [0.5] * 3)

    conn.execute.assert_not_awaited()


# =============================================================================
# Schema
# =============================================================================

@pytest.mark.asyncio
async def test_init_schema_executes_ddl():
    pool, conn = mock_pool()

    await init_schema(pool)

    ddl = conn.execute.await_args.args[0]
    assert "CREATE TABLE IF NOT EXISTS agents" in ddl
    assert "TEXT NOT NULL UNIQUE" in ddl
    assert "vector(1536)" in ddl
