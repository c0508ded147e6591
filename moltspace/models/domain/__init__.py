"""
Domain Models - Storage-agnostic data structures

These models represent persisted rows independent of the storage layer.
The ingestion pipeline builds them from Moltbook API models and hands them
to repositories; it never works with raw database rows.

Every model carries two identities:
- id: internal short id (ag_/sm_/po_/cm_), generated on first insert
- moltbook_id: upstream id, the idempotency key for upserts
"""

from .agent import Agent
from .submolt import Submolt
from .post import Post
from .comment import Comment

__all__ = [
    'Agent',
    'Submolt',
    'Post',
    'Comment',
]
