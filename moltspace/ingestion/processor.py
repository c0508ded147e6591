"""
EntityProcessor - reconciles Moltbook records into PostgreSQL

Each process_* call upserts a batch by moltbook_id and returns a
ReconcileResult whose id_map (moltbook_id -> internal id) is used to resolve
foreign keys in later stages:

    agents, submolts -> posts (author_id, submolt_id)
    agents, posts    -> comments (author_id, post_id)

A record that fails to upsert is logged, listed in ReconcileResult.failures
and left out of id_map. It never stops its siblings.
"""
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from moltspace.errors import ReconciliationError
from moltspace.models.domain import Agent, Post, Submolt
from moltspace.models.moltbook import (
    MoltbookAgent,
    MoltbookComment,
    MoltbookPost,
    MoltbookSubmolt,
)
from moltspace.repositories import (
    AgentRepository,
    CommentRepository,
    PostRepository,
    SubmoltRepository,
)

from .comment_tree import CommentTreeFlattener

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Outcome of reconciling one batch of upstream records"""
    id_map: Dict[str, str] = field(default_factory=dict)
    created: int = 0
    updated: int = 0
    failures: List[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.id_map)

    def record(self, moltbook_id: str, internal_id: str, created: bool):
        self.id_map[moltbook_id] = internal_id
        if created:
            self.created += 1
        else:
            self.updated += 1

    def fail(self, error: ReconciliationError):
        self.failures.append(str(error))


class EntityProcessor:
    """Upsert-by-moltbook-id for agents, submolts, posts and comment trees"""

    def __init__(
        self,
        agent_repo: AgentRepository,
        submolt_repo: SubmoltRepository,
        post_repo: PostRepository,
        comment_repo: CommentRepository
    ):
        self.agents = agent_repo
        self.submolts = submolt_repo
        self.posts = post_repo
        self.comment_tree = CommentTreeFlattener(comment_repo)

    async def _reconcile(
        self,
        kind: str,
        records: Iterable,
        upsert_one: Callable[..., Awaitable[Tuple[str, bool]]]
    ) -> ReconcileResult:
        result = ReconcileResult()

        for record in records:
            try:
                internal_id, created = await upsert_one(record)
            except Exception as e:
                error = ReconciliationError(kind, record.id, e)
                logger.error(str(error))
                result.fail(error)
                continue

            result.record(record.id, internal_id, created)

        logger.info(
            f"Reconciled {result.processed} {kind}s "
            f"({result.created} new, {result.updated} updated, {len(result.failures)} failed)"
        )
        return result

    async def process_agents(self, agents: List[MoltbookAgent]) -> ReconcileResult:
        """Upsert fetched agents."""
        return await self._reconcile(
            'agent', agents,
            lambda agent: self.agents.upsert(Agent.from_moltbook(agent))
        )

    async def process_submolts(self, submolts: List[MoltbookSubmolt]) -> ReconcileResult:
        """Upsert fetched submolts."""
        return await self._reconcile(
            'submolt', submolts,
            lambda submolt: self.submolts.upsert(Submolt.from_moltbook(submolt))
        )

    async def ensure_agent(self, moltbook_id: str, name: str) -> str:
        """
        Create-or-touch an agent referenced by a post.

        The agents endpoint only returns recent agents, so post authors are
        routinely missing from the pre-fetched batch.

        Returns:
            Internal agent id
        """
        return await self.agents.ensure(moltbook_id, name or moltbook_id)

    async def process_posts(
        self,
        posts: List[MoltbookPost],
        agent_map: Dict[str, str],
        submolt_map: Dict[str, str]
    ) -> ReconcileResult:
        """
        Upsert fetched posts.

        Unknown authors are created via ensure_agent() and added to
        agent_map in place. Unknown submolts are stored as NULL.

        Args:
            posts: Posts in upstream order
            agent_map: moltbook agent id -> internal id (mutated)
            submolt_map: moltbook submolt id -> internal id
        """
        async def upsert_post(post: MoltbookPost) -> Tuple[str, bool]:
            author_id = await self._resolve_author(post, agent_map)
            submolt_id = submolt_map.get(post.submolt.id) if post.submolt else None
            return await self.posts.upsert(Post.from_moltbook(post, author_id, submolt_id))

        return await self._reconcile('post', posts, upsert_post)

    async def _resolve_author(
        self,
        post: MoltbookPost,
        agent_map: Dict[str, str]
    ) -> Optional[str]:
        if post.author is None:
            return None

        author_id = agent_map.get(post.author.id)
        if author_id is None:
            author_id = await self.ensure_agent(post.author.id, post.author.name)
            agent_map[post.author.id] = author_id
            logger.debug(f"Created missing author {post.author.id} for post {post.id}")
        return author_id

    async def process_comments(
        self,
        comments: List[MoltbookComment],
        post_id: str,
        agent_map: Dict[str, str],
        parent_id: Optional[str] = None
    ) -> int:
        """
        Upsert a comment forest for one post.

        Returns:
            Number of newly inserted comments
        """
        return await self.comment_tree.flatten(comments, post_id, agent_map, parent_id)
