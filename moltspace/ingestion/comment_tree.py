"""
CommentTreeFlattener - stores nested Moltbook replies as parent-linked rows

The tree is walked with an explicit stack instead of recursion, so deep
reply chains are safe. A node is always upserted before its replies are
pushed, which keeps parent rows ahead of their children.

Skip policy: a comment whose author is not in the agent map is never stored.
Its replies are still processed and attach to the nearest stored ancestor
(top level when there is none). A comment whose upsert fails is handled the
same way.
"""
import logging
from typing import Dict, List, Optional, Tuple

from moltspace.errors import ReconciliationError
from moltspace.models.domain import Comment
from moltspace.models.moltbook import MoltbookComment
from moltspace.repositories import CommentRepository

logger = logging.getLogger(__name__)


class CommentTreeFlattener:

    def __init__(self, comment_repo: CommentRepository):
        self.comments = comment_repo

    async def flatten(
        self,
        nodes: List[MoltbookComment],
        post_id: str,
        agent_map: Dict[str, str],
        parent_id: Optional[str] = None
    ) -> int:
        """
        Upsert every node in the forest.

        Args:
            nodes: Top-level comments (each with nested replies)
            post_id: Internal post id
            agent_map: moltbook agent id -> internal id
            parent_id: Internal id the top-level nodes attach to

        Returns:
            Number of comments inserted (updates don't count)
        """
        inserted = 0
        skipped = 0

        # Reversed pushes keep siblings in upstream order (pre-order walk)
        stack: List[Tuple[MoltbookComment, Optional[str]]] = [
            (node, parent_id) for node in reversed(nodes)
        ]

        while stack:
            node, parent = stack.pop()

            stored = await self._store(node, post_id, agent_map, parent)
            if stored is None:
                skipped += 1
                child_parent = parent
            else:
                comment_id, created = stored
                if created:
                    inserted += 1
                child_parent = comment_id

            for reply in reversed(node.replies):
                stack.append((reply, child_parent))

        if skipped:
            logger.info(f"Post {post_id}: {inserted} comments inserted, {skipped} skipped")
        return inserted

    async def _store(
        self,
        node: MoltbookComment,
        post_id: str,
        agent_map: Dict[str, str],
        parent_id: Optional[str]
    ) -> Optional[Tuple[str, bool]]:
        author_id = agent_map.get(node.author.id) if node.author else None
        if not author_id:
            logger.warning(f"Skipping comment {node.id}: author not found")
            return None

        try:
            return await self.comments.upsert(
                Comment.from_moltbook(node, post_id, author_id, parent_id)
            )
        except Exception as e:
            logger.error(str(ReconciliationError('comment', node.id, e)))
            return None
