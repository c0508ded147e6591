"""
Comment domain model
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from moltspace.models.moltbook import MoltbookComment
from moltspace.utils.id_generator import generate_id, validate_id


@dataclass
class Comment:
    """
    Comment domain model - storage-agnostic representation

    Storage: PostgreSQL (comments table)

    Every stored comment has an author; comments whose author cannot be
    resolved are never built.

    ID format: cm_xxxxxxxx (11 chars)
    """
    moltbook_id: str
    post_id: str     # po_xxxxxxxx
    author_id: str   # ag_xxxxxxxx
    content: str
    id: Optional[str] = None

    # Threading support
    parent_id: Optional[str] = None  # cm_xxxxxxxx

    upvotes: int = 0
    downvotes: int = 0
    created_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate and generate ID if needed"""
        if not self.id or not validate_id(self.id, 'comment'):
            self.id = generate_id('comment')

        if not self.post_id:
            raise ValueError("Comment must have a post_id")
        if not self.author_id:
            raise ValueError("Comment must have an author_id")

        if self.created_at is None:
            self.created_at = datetime.now(timezone.utc)

    @classmethod
    def from_moltbook(
        cls,
        comment: MoltbookComment,
        post_id: str,
        author_id: str,
        parent_id: Optional[str] = None
    ) -> 'Comment':
        return cls(
            moltbook_id=comment.id,
            post_id=post_id,
            author_id=author_id,
            parent_id=parent_id,
            content=comment.content,
            upvotes=comment.upvotes,
            downvotes=comment.downvotes,
            created_at=comment.created_at,
        )

    @property
    def is_reply(self) -> bool:
        """Check if this is a reply to another comment"""
        return self.parent_id is not None

    @property
    def is_root_comment(self) -> bool:
        """Check if this is a top-level comment"""
        return self.parent_id is None
