"""
IngestionJob - one batch run over the Moltbook API

Stage order is fixed:
1. Agents      (recent batch)
2. Submolts
3. Posts       (needs agent/submolt maps for foreign keys)
4. Embeddings  (first N fetched posts, only when a provider is configured)
5. Comments    (optional, first M fetched posts)

Every stage appends to one shared error list instead of aborting the run.
Malformed upstream items are dropped individually and reported there too.
Each upsert commits on its own, so a run that dies halfway leaves the rows
it already wrote intact.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import asyncpg

from moltspace.config import get_settings
from moltspace.models.moltbook import MoltbookPost
from moltspace.repositories import (
    AgentRepository,
    CommentRepository,
    PostRepository,
    SubmoltRepository,
)
from moltspace.services.embeddings import EmbeddingService
from moltspace.services.moltbook_client import MoltbookClient

from .fetcher import MoltbookFetcher
from .processor import EntityProcessor

logger = logging.getLogger(__name__)

EMBEDDINGS_SKIPPED = "OPENAI_API_KEY not set; embeddings skipped. Posts still saved."
NO_POSTS_FETCHED = "Moltbook API returned 0 posts. Check network or try increasing maxPosts."


@dataclass
class IngestionStats:
    agents_processed: int = 0
    submolts_processed: int = 0
    posts_processed: int = 0
    comments_processed: int = 0
    embeddings_generated: int = 0
    errors: List[str] = field(default_factory=list)
    posts_fetched_from_moltbook: int = 0

    def to_dict(self) -> dict:
        """Serialize with the camelCase keys of the job trigger response"""
        return {
            'agentsProcessed': self.agents_processed,
            'submoltsProcessed': self.submolts_processed,
            'postsProcessed': self.posts_processed,
            'commentsProcessed': self.comments_processed,
            'embeddingsGenerated': self.embeddings_generated,
            'errors': list(self.errors),
            'postsFetchedFromMoltbook': self.posts_fetched_from_moltbook,
        }


class IngestionJob:
    """
    Batch coordinator.

    The moltbook_id -> internal id maps live only for the duration of one
    run() and are rebuilt from store upserts every time.
    """

    def __init__(
        self,
        fetcher: MoltbookFetcher,
        processor: EntityProcessor,
        post_repo: PostRepository,
        embeddings: EmbeddingService,
        embedding_post_limit: Optional[int] = None,
        comment_post_limit: Optional[int] = None
    ):
        settings = get_settings()
        self.fetcher = fetcher
        self.processor = processor
        self.posts = post_repo
        self.embeddings = embeddings
        self.embedding_post_limit = (
            settings.ingest_embedding_post_limit
            if embedding_post_limit is None else embedding_post_limit
        )
        self.comment_post_limit = (
            settings.ingest_comment_post_limit
            if comment_post_limit is None else comment_post_limit
        )

    @classmethod
    def from_pool(
        cls,
        pool: asyncpg.Pool,
        client: Optional[MoltbookClient] = None,
        embeddings: Optional[EmbeddingService] = None
    ) -> 'IngestionJob':
        """Wire a job against PostgreSQL repositories"""
        post_repo = PostRepository(pool)
        processor = EntityProcessor(
            AgentRepository(pool),
            SubmoltRepository(pool),
            post_repo,
            CommentRepository(pool),
        )
        return cls(
            fetcher=MoltbookFetcher(client or MoltbookClient()),
            processor=processor,
            post_repo=post_repo,
            embeddings=embeddings or EmbeddingService(),
        )

    async def execute(self, max_posts: int = 100, include_comments: bool = False) -> dict:
        """
        Run the job and build the trigger response.

        Returns:
            {'success': True, 'stats': {...}} or, when something escapes
            run(), {'success': False, 'error': '...'}
        """
        try:
            stats = await self.run(max_posts=max_posts, include_comments=include_comments)
        except Exception as e:
            logger.error(f"Ingestion error: {e}", exc_info=True)
            return {'success': False, 'error': str(e)}

        return {'success': True, 'stats': stats.to_dict()}

    async def run(self, max_posts: int = 100, include_comments: bool = False) -> IngestionStats:
        stats = IngestionStats()

        # Step 1: agents
        logger.info("Fetching agents...")
        agents = await self.fetcher.fetch_all_agents()
        stats.errors.extend(self.fetcher.take_rejected())
        agent_result = await self.processor.process_agents(agents)
        stats.errors.extend(agent_result.failures)
        agent_map = agent_result.id_map

        # Step 2: submolts
        logger.info("Fetching submolts...")
        submolts = await self.fetcher.fetch_all_submolts()
        stats.errors.extend(self.fetcher.take_rejected())
        submolt_result = await self.processor.process_submolts(submolts)
        stats.errors.extend(submolt_result.failures)
        stats.submolts_processed = submolt_result.processed

        # Step 3: posts
        logger.info("Fetching posts...")
        fetched = await self.fetcher.fetch_all_posts(max_items=max_posts)
        stats.errors.extend(fetched.errors)
        stats.errors.extend(self.fetcher.take_rejected())
        stats.posts_fetched_from_moltbook = len(fetched.posts)
        if not fetched.posts and not fetched.errors:
            stats.errors.append(NO_POSTS_FETCHED)

        post_map = await self._process_posts(fetched.posts, agent_map, submolt_result.id_map, stats)
        stats.posts_processed = len(post_map)
        stats.agents_processed = len(agent_map)
        logger.info(
            f"Processed {stats.posts_processed} posts "
            f"({stats.posts_fetched_from_moltbook} fetched from Moltbook)"
        )

        # Step 4: embeddings
        if self.embeddings.is_available:
            await self._generate_embeddings(fetched.posts, post_map, stats)
        else:
            logger.warning(EMBEDDINGS_SKIPPED)
            stats.errors.append(EMBEDDINGS_SKIPPED)

        # Step 5: comments
        if include_comments:
            await self._ingest_comments(fetched.posts, post_map, agent_map, stats)
            stats.errors.extend(self.fetcher.take_rejected())

        logger.info(
            f"✅ Ingestion finished: {stats.agents_processed} agents, "
            f"{stats.submolts_processed} submolts, {stats.posts_processed} posts, "
            f"{stats.comments_processed} comments, {stats.embeddings_generated} embeddings, "
            f"{len(stats.errors)} errors"
        )
        return stats

    async def _process_posts(
        self,
        posts: List[MoltbookPost],
        agent_map: Dict[str, str],
        submolt_map: Dict[str, str],
        stats: IngestionStats
    ) -> Dict[str, str]:
        # The only stage whose failure degrades to an empty result
        try:
            result = await self.processor.process_posts(posts, agent_map, submolt_map)
        except Exception as e:
            logger.error(f"process_posts error: {e}", exc_info=True)
            stats.errors.append(f"process_posts failed: {e}")
            return {}

        stats.errors.extend(result.failures)
        return result.id_map

    async def _generate_embeddings(
        self,
        posts: List[MoltbookPost],
        post_map: Dict[str, str],
        stats: IngestionStats
    ):
        logger.info("Generating embeddings...")
        for post in posts[:self.embedding_post_limit]:
            post_id = post_map.get(post.id)
            if not post_id:
                continue

            try:
                embedding = await self.embeddings.generate_embedding(post.embedding_text)
                await self.posts.store_embedding(post_id, embedding)
                stats.embeddings_generated += 1
            except Exception as e:
                stats.errors.append(f"Embedding failed for post {post.id}: {e}")

    async def _ingest_comments(
        self,
        posts: List[MoltbookPost],
        post_map: Dict[str, str],
        agent_map: Dict[str, str],
        stats: IngestionStats
    ):
        logger.info("Fetching comments...")
        for post in posts[:self.comment_post_limit]:
            post_id = post_map.get(post.id)
            if not post_id:
                continue

            try:
                comments = await self.fetcher.fetch_post_comments(post.id)
                stats.comments_processed += await self.processor.process_comments(
                    comments, post_id, agent_map
                )
            except Exception as e:
                stats.errors.append(f"Failed to process comments for post {post.id}: {e}")
