"""
Moltbook API response models

Upstream payloads are validated into these pydantic models at the client
boundary. Unknown fields are ignored; nullable counters and lists are
normalized so the pipeline never has to special-case them.
"""
import copy
from datetime import datetime
from typing import ClassVar, List, Optional, Type

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from moltspace.errors import ReconciliationError


class MoltbookModel(BaseModel):
    model_config = ConfigDict(extra='ignore')

    @field_validator('*', mode='before')
    @classmethod
    def none_to_default(cls, v, info):
        """Moltbook sends null for empty counters/lists; use the field default"""
        if v is None:
            field = cls.model_fields[info.field_name]
            if not field.is_required() and field.default is not None:
                return copy.copy(field.default)
        return v


class AgentOwner(MoltbookModel):
    x_handle: Optional[str] = None
    x_name: Optional[str] = None
    x_follower_count: int = 0
    x_verified: bool = False


class MoltbookAgent(MoltbookModel):
    id: str
    name: str
    description: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    claimed_at: Optional[datetime] = None
    is_claimed: bool = False
    karma: int = 0
    follower_count: int = 0
    owner: Optional[AgentOwner] = None


class MoltbookSubmolt(MoltbookModel):
    id: str
    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    subscriber_count: int = 0
    created_at: Optional[datetime] = None
    last_activity_at: Optional[datetime] = None
    featured_at: Optional[datetime] = None
    created_by: Optional[str] = None


class SubmoltRef(MoltbookModel):
    """Community reference embedded in a post"""
    id: str
    name: str = ""
    display_name: Optional[str] = None


class AuthorRef(MoltbookModel):
    """Author reference embedded in a post or comment"""
    id: str
    name: str = ""
    karma: int = 0
    follower_count: int = 0


class MoltbookPost(MoltbookModel):
    id: str
    title: str = ""
    content: str = ""
    url: Optional[str] = None
    upvotes: int = 0
    downvotes: int = 0
    comment_count: int = 0
    created_at: Optional[datetime] = None
    submolt: Optional[SubmoltRef] = None
    author: Optional[AuthorRef] = None

    @property
    def embedding_text(self) -> str:
        return f"{self.title}\n\n{self.content}"


class MoltbookComment(MoltbookModel):
    id: str
    content: str = ""
    parent_id: Optional[str] = None
    upvotes: int = 0
    downvotes: int = 0
    created_at: Optional[datetime] = None
    author: Optional[AuthorRef] = None
    replies: List['MoltbookComment'] = []


MoltbookComment.model_rebuild()


# =============================================================================
# Response envelopes
# =============================================================================

def _first_error(error: ValidationError) -> str:
    detail = error.errors()[0]
    location = '.'.join(str(part) for part in detail['loc'])
    return f"{location} {detail['msg']}" if location else detail['msg']


class MoltbookPage(MoltbookModel):
    """
    Envelope whose item list is validated one item at a time.

    A malformed item is dropped and described in `rejected`; its siblings
    are kept. `received` is the number of items upstream sent, valid or not,
    and is what pagination compares against the page size.
    """
    items_field: ClassVar[str]
    item_model: ClassVar[Type[MoltbookModel]]
    item_kind: ClassVar[str]

    received: int = 0
    rejected: List[str] = []

    @model_validator(mode='before')
    @classmethod
    def validate_items(cls, data):
        if not isinstance(data, dict):
            return data
        raw_items = data.get(cls.items_field)
        if not isinstance(raw_items, list):
            return data

        items = []
        rejected = []
        for raw in raw_items:
            try:
                items.append(cls.item_model.model_validate(raw))
            except ValidationError as e:
                item_id = raw.get('id') if isinstance(raw, dict) else None
                rejected.append(str(ReconciliationError(cls.item_kind, item_id, _first_error(e))))

        return {
            **data,
            cls.items_field: items,
            'received': len(raw_items),
            'rejected': rejected,
        }


class PostsPage(MoltbookPage):
    items_field = 'posts'
    item_model = MoltbookPost
    item_kind = 'post'

    success: bool = True
    posts: List[MoltbookPost] = []
    count: int = 0
    has_more: bool = False
    next_offset: Optional[int] = None


class CommentsPage(MoltbookPage):
    items_field = 'comments'
    item_model = MoltbookComment
    item_kind = 'comment'

    success: bool = True
    post_id: Optional[str] = None
    post_title: Optional[str] = None
    count: int = 0
    comments: List[MoltbookComment] = []


class AgentsPage(MoltbookPage):
    items_field = 'agents'
    item_model = MoltbookAgent
    item_kind = 'agent'

    success: bool = True
    agents: List[MoltbookAgent] = []
    total_count: int = 0


class SubmoltsPage(MoltbookPage):
    items_field = 'submolts'
    item_model = MoltbookSubmolt
    item_kind = 'submolt'

    success: bool = True
    submolts: List[MoltbookSubmolt] = []
    count: int = 0
    total_posts: int = 0
    total_comments: int = 0
