"""
Scenario tests for IngestionJob: stage ordering, stats and partial failure.

Upstream is an AsyncMock client behind a real MoltbookFetcher; storage is the
in-memory store; the embedding provider is a mocked OpenAI client.
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from moltspace.errors import UpstreamError
from moltspace.ingestion import IngestionJob, MoltbookFetcher
from moltspace.ingestion.job import EMBEDDINGS_SKIPPED, NO_POSTS_FETCHED
from moltspace.models.moltbook import AgentsPage, PostsPage
from moltspace.services.embeddings import EmbeddingService

from .fakes import (
    agents_page,
    comments_page,
    make_agent,
    make_comment,
    make_post,
    make_submolt,
    posts_page,
    submolts_page,
)


def make_upstream(posts=None, comments=None):
    client = AsyncMock()
    client.get_agents.return_value = agents_page([make_agent("a1")])
    client.get_submolts.return_value = submolts_page([make_submolt("s1")])
    client.get_posts.return_value = posts_page(
        posts if posts is not None else [
            make_post("p1", author_id="a1"),
            make_post("p2", author_id="a9"),
        ],
        has_more=False,
    )
    client.get_comments.side_effect = lambda post_id, limit, offset: comments_page(
        (comments or {}).get(post_id, [])
    )
    return client


def make_embeddings(fail_for=()):
    openai = MagicMock()

    async def create(model, input, dimensions):
        if any(f"Post {post_id}\n" in input for post_id in fail_for):
            raise RuntimeError("rate limited")
        return SimpleNamespace(data=[SimpleNamespace(embedding=[0.1] * dimensions)])

    openai.embeddings.create = AsyncMock(side_effect=create)
    return EmbeddingService(client=openai)


def make_job(store, client, embeddings=None, **limits):
    fetcher = MoltbookFetcher(client, page_delay=0, comment_page_delay=0, sleep=AsyncMock())
    return IngestionJob(
        fetcher=fetcher,
        processor=store.processor(),
        post_repo=store.posts,
        embeddings=embeddings or EmbeddingService(api_key=""),
        embedding_post_limit=limits.get('embedding_post_limit', 50),
        comment_post_limit=limits.get('comment_post_limit', 10),
    )


# =============================================================================
# Core scenarios
# =============================================================================

@pytest.mark.asyncio
async def test_known_and_unknown_author_scenario(store):
    job = make_job(store, make_upstream())

    stats = await job.run(max_posts=100)

    assert stats.agents_processed == 2  # one fetched, one created for p2
    assert stats.posts_processed == 2
    assert stats.posts_fetched_from_moltbook == 2
    assert stats.submolts_processed == 1
    assert store.post_table.rows["p2"].author_id == store.agent_table.rows["a9"].id


@pytest.mark.asyncio
async def test_missing_provider_skips_embeddings_with_one_advisory(store):
    job = make_job(store, make_upstream())

    stats = await job.run()

    assert stats.embeddings_generated == 0
    assert stats.posts_processed == 2
    assert [e for e in stats.errors if "embeddings skipped" in e] == [EMBEDDINGS_SKIPPED]
    assert len(stats.errors) == 1
    assert store.posts.embeddings == {}


@pytest.mark.asyncio
async def test_embeddings_generated_for_first_posts(store):
    embeddings = make_embeddings()
    job = make_job(store, make_upstream(), embeddings, embedding_post_limit=1)

    stats = await job.run()

    assert stats.embeddings_generated == 1
    assert stats.errors == []
    p1_id = store.post_table.rows["p1"].id
    assert list(store.posts.embeddings) == [p1_id]
    call = embeddings.client.embeddings.create.await_args
    assert call.kwargs['input'] == "Post p1\n\nBody of p1"
    assert call.kwargs['dimensions'] == 1536


@pytest.mark.asyncio
async def test_embedding_failure_is_recorded_per_post(store):
    job = make_job(store, make_upstream(), make_embeddings(fail_for=["p1"]))

    stats = await job.run()

    assert stats.embeddings_generated == 1
    assert len(stats.errors) == 1
    assert stats.errors[0].startswith("Embedding failed for post p1")


# =============================================================================
# Partial failure
# =============================================================================

@pytest.mark.asyncio
async def test_posts_stage_exception_degrades_to_zero_posts(store):
    client = make_upstream(comments={"p1": [make_comment("c1")]})
    job = make_job(store, client, make_embeddings())
    job.processor.process_posts = AsyncMock(side_effect=RuntimeError("pool exhausted"))

    stats = await job.run(include_comments=True)

    assert stats.posts_processed == 0
    assert stats.posts_fetched_from_moltbook == 2
    assert "process_posts failed: pool exhausted" in stats.errors
    # Later stages still ran but found no post mappings
    assert stats.embeddings_generated == 0
    assert stats.comments_processed == 0
    client.get_comments.assert_not_awaited()


@pytest.mark.asyncio
async def test_post_fetch_error_keeps_partial_results(store):
    client = make_upstream()
    client.get_posts.side_effect = [
        posts_page([make_post(f"p{i}") for i in range(100)], has_more=True, next_offset=100),
        UpstreamError(500, "Internal Server Error"),
    ]
    job = make_job(store, client, make_embeddings(), embedding_post_limit=0)

    stats = await job.run(max_posts=300)

    assert stats.posts_processed == 100
    assert stats.errors == [
        "Failed to fetch posts at offset 100: Moltbook API error: 500 Internal Server Error"
    ]


@pytest.mark.asyncio
async def test_malformed_records_are_skipped_and_reported(store):
    client = make_upstream()
    client.get_agents.return_value = AgentsPage.model_validate(
        {"agents": [{"id": "a1", "name": "molty"}, {"id": "a2", "name": None}]}
    )
    client.get_posts.return_value = PostsPage.model_validate({"posts": [
        {"id": "p1", "title": "ok", "author": {"id": "a1", "name": "molty"}},
        {"id": "p2", "title": "broken", "author": {"id": None}},
        {"id": "p3", "title": "ok too", "author": {"id": "a1", "name": "molty"}},
    ]})
    job = make_job(store, client, make_embeddings(), embedding_post_limit=0)

    stats = await job.run()

    assert stats.agents_processed == 1
    assert stats.posts_processed == 2
    assert set(store.post_table.rows) == {"p1", "p3"}
    assert stats.errors == [
        "Failed to process agent a2: name Input should be a valid string",
        "Failed to process post p2: author.id Input should be a valid string",
    ]


@pytest.mark.asyncio
async def test_zero_posts_adds_advisory(store):
    job = make_job(store, make_upstream(posts=[]), make_embeddings())

    stats = await job.run()

    assert stats.posts_processed == 0
    assert stats.errors == [NO_POSTS_FETCHED]


@pytest.mark.asyncio
async def test_upstream_down_still_returns_report(store):
    client = make_upstream()
    client.get_agents.side_effect = UpstreamError(None, "connection refused")
    client.get_submolts.side_effect = UpstreamError(None, "connection refused")
    client.get_posts.side_effect = UpstreamError(None, "connection refused")
    job = make_job(store, client)

    result = await job.execute()

    assert result['success'] is True
    assert result['stats']['agentsProcessed'] == 0
    assert result['stats']['postsProcessed'] == 0
    assert any("offset 0" in e for e in result['stats']['errors'])


# =============================================================================
# Comments stage
# =============================================================================

@pytest.mark.asyncio
async def test_comments_ingested_when_requested(store):
    comments = {
        "p1": [make_comment("c1", author_id="a1", replies=[make_comment("c2", author_id="a9")])],
        "p2": [make_comment("c3", author_id="stranger")],
    }
    client = make_upstream(comments=comments)
    job = make_job(store, client, make_embeddings())

    stats = await job.run(include_comments=True)

    # a9 is known through post p2's lazy creation; "stranger" is not
    assert stats.comments_processed == 2
    assert store.comment("c3") is None
    assert store.comment("c2").parent_id == store.comment("c1").id
    assert store.comment("c1").post_id == store.post_table.rows["p1"].id


@pytest.mark.asyncio
async def test_comments_skipped_unless_requested(store):
    client = make_upstream(comments={"p1": [make_comment("c1")]})
    job = make_job(store, client, make_embeddings())

    stats = await job.run()

    assert stats.comments_processed == 0
    client.get_comments.assert_not_awaited()


@pytest.mark.asyncio
async def test_comment_post_limit(store):
    client = make_upstream(comments={"p1": [make_comment("c1")], "p2": [make_comment("c2")]})
    job = make_job(store, client, make_embeddings(), comment_post_limit=1)

    stats = await job.run(include_comments=True)

    assert stats.comments_processed == 1
    assert client.get_comments.await_count == 1


@pytest.mark.asyncio
async def test_rerun_is_idempotent(store):
    comments = {"p1": [make_comment("c1", replies=[make_comment("c2")])]}
    job = make_job(store, make_upstream(comments=comments), make_embeddings())

    first = await job.run(include_comments=True)
    rows_after_first = (
        len(store.agent_table.rows), len(store.post_table.rows), len(store.comment_table.rows)
    )
    second = await job.run(include_comments=True)

    assert first.comments_processed == 2
    assert second.comments_processed == 0
    assert second.posts_processed == first.posts_processed
    assert (
        len(store.agent_table.rows), len(store.post_table.rows), len(store.comment_table.rows)
    ) == rows_after_first


# =============================================================================
# execute()
# =============================================================================

@pytest.mark.asyncio
async def test_execute_returns_camel_case_stats(store):
    job = make_job(store, make_upstream())

    result = await job.execute(max_posts=10)

    assert result['success'] is True
    assert set(result['stats']) == {
        'agentsProcessed', 'submoltsProcessed', 'postsProcessed', 'commentsProcessed',
        'embeddingsGenerated', 'errors', 'postsFetchedFromMoltbook',
    }


@pytest.mark.asyncio
async def test_execute_reports_catastrophic_failure(store):
    job = make_job(store, make_upstream())
    job.processor.process_agents = AsyncMock(side_effect=RuntimeError("database is down"))

    result = await job.execute()

    assert result == {'success': False, 'error': 'database is down'}
