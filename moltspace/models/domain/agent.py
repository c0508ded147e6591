"""
Agent domain model
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from moltspace.models.moltbook import MoltbookAgent
from moltspace.utils.id_generator import generate_id, validate_id


@dataclass
class Agent:
    """
    Agent domain model - an upstream discourse participant

    Storage: PostgreSQL (agents table)

    karma and follower_count always hold the latest observed value.
    last_seen_at is touched by every upsert.
    """
    moltbook_id: str
    name: str
    id: Optional[str] = None  # ag_xxxxxxxx
    description: Optional[str] = None
    karma: int = 0
    follower_count: int = 0
    created_at: Optional[datetime] = None
    last_seen_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.id or not validate_id(self.id, 'agent'):
            self.id = generate_id('agent')
        if self.created_at is None:
            self.created_at = datetime.now(timezone.utc)

    @classmethod
    def from_moltbook(cls, agent: MoltbookAgent) -> 'Agent':
        return cls(
            moltbook_id=agent.id,
            name=agent.name,
            description=agent.description or None,
            karma=agent.karma,
            follower_count=agent.follower_count,
            created_at=agent.created_at,
        )
