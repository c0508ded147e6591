"""
Post domain model
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from moltspace.models.moltbook import MoltbookPost
from moltspace.utils.id_generator import generate_id, validate_id


@dataclass
class Post:
    """
    Post domain model

    Storage: PostgreSQL (posts table, embedding in a pgvector column)

    author_id / submolt_id are internal ids and must point at rows that
    already exist. submolt_id may stay None when the community was not part
    of the fetched set.
    """
    moltbook_id: str
    title: str
    content: str
    id: Optional[str] = None  # po_xxxxxxxx
    author_id: Optional[str] = None    # ag_xxxxxxxx
    submolt_id: Optional[str] = None   # sm_xxxxxxxx
    upvotes: int = 0
    downvotes: int = 0
    comment_count: int = 0
    created_at: Optional[datetime] = None
    embedding: Optional[List[float]] = None

    def __post_init__(self):
        if not self.id or not validate_id(self.id, 'post'):
            self.id = generate_id('post')
        if self.created_at is None:
            self.created_at = datetime.now(timezone.utc)

    @classmethod
    def from_moltbook(
        cls,
        post: MoltbookPost,
        author_id: Optional[str],
        submolt_id: Optional[str]
    ) -> 'Post':
        return cls(
            moltbook_id=post.id,
            title=post.title,
            content=post.content,
            author_id=author_id,
            submolt_id=submolt_id,
            upvotes=post.upvotes,
            downvotes=post.downvotes,
            comment_count=post.comment_count,
            created_at=post.created_at,
        )
